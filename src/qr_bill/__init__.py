from .modules.payload_codec import decode, encode
from .modules.validator import validate

from .address import Address, AddressType
from .alternative_scheme import AlternativeScheme, scheme_name
from .bill import Bill, Currency, Version
from .bill_format import BillFormat, GraphicsFormat, Language, OutputSize, SeparatorType
from .validation_result import ErrorKind, ValidationMessage, ValidationResult

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from shared_modules.utils import clean_text

_SCHEME_NAME_RE = re.compile(r"^[^/;]+")


def scheme_name(parameter: Optional[str]) -> Optional[str]:
    """Kennung am Anfang des Parameters, bis zum ersten '/' oder ';' (z.B. 'eBill')."""
    match = _SCHEME_NAME_RE.match(clean_text(parameter) or "")
    return clean_text(match.group(0)) if match else None


class AlternativeScheme(BaseModel):
    """
    Parameter eines alternativen Zahlverfahrens (z.B. eBill).
    Im QR-Code-Text steht nur der Parameter; der Name ist dessen Kennung.
    """
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    parameter: Optional[str] = None

    @field_validator("name", "parameter", mode="before")
    @classmethod
    def clean_fields(cls, v):
        return clean_text(v)

    @classmethod
    def from_parameter(cls, parameter: Optional[str]) -> "AlternativeScheme":
        return cls(name=scheme_name(parameter), parameter=parameter)

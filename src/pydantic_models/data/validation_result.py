from enum import Enum
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict


class ErrorKind(str, Enum):
    INVALID_IBAN = "InvalidIban"
    INVALID_REFERENCE = "InvalidReference"
    INVALID_REFERENCE_TYPE = "InvalidReferenceType"
    INVALID_CHARACTERS = "InvalidCharacters"
    FIELD_TOO_LONG = "FieldTooLong"
    MISSING_MANDATORY_FIELD = "MissingMandatoryField"
    AMBIGUOUS_ADDRESS_VARIANT = "AmbiguousAddressVariant"
    VALUE_OUT_OF_RANGE = "ValueOutOfRange"
    INVALID_VALUE = "InvalidValue"
    TOO_MANY_ELEMENTS = "TooManyElements"


class ValidationMessage(BaseModel):
    """
    Ein einzelner Validierungsfehler, adressiert über den Feldpfad
    (z.B. "reference" oder "debtor.postal_code").
    """
    model_config = ConfigDict(frozen=True)

    field: str
    kind: ErrorKind
    message_key: str
    message: str = ""

    def __str__(self) -> str:
        return f"{self.field}: {self.message or self.message_key}"


class ValidationResult(BaseModel):
    """
    Ergebnis einer Validierung: alle gefundenen Fehler in Prüfreihenfolge.
    """
    model_config = ConfigDict(frozen=True)

    messages: Tuple[ValidationMessage, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.messages

    @property
    def has_errors(self) -> bool:
        return bool(self.messages)

    def for_field(self, field: str) -> List[ValidationMessage]:
        """Alle Meldungen zu einem Feld bzw. zu dessen Unterfeldern."""
        return [
            m for m in self.messages
            if m.field == field or m.field.startswith(f"{field}.") or m.field.startswith(f"{field}[")
        ]

    def kinds(self, field: str) -> List[ErrorKind]:
        return [m.kind for m in self.for_field(field)]

    def __str__(self) -> str:
        if self.is_valid:
            return "Keine Fehler"
        return "\n".join(str(m) for m in self.messages)

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from shared_modules.utils import clean_text


class AddressType(str, Enum):
    """
    Abgeleitete Adressvariante.
    S und K sind die Kennzeichen im QR-Code-Text.
    """
    UNDETERMINED = "U"
    STRUCTURED = "S"
    COMBINED_ELEMENTS = "K"
    CONFLICTING = "X"


STRUCTURED_FIELDS = ("street", "house_no", "postal_code", "town")
COMBINED_FIELDS = ("address_line_1", "address_line_2")


class Address(BaseModel):
    """
    Adresse von Zahlungsempfänger oder Zahlungspflichtigem.
    Entweder strukturiert (Strasse, Hausnummer, PLZ, Ort) oder kombiniert
    (zwei freie Adresszeilen). Name und Land gehören zu beiden Varianten.

    Der allgemeine Konstruktor nimmt Rohdaten entgegen (Formular, Decoder) und
    prüft die Variante nicht; das Ergebnis steht in `type`. Über structured()
    und combined() lassen sich nur eindeutige Adressen erzeugen.
    """
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    street: Optional[str] = None
    house_no: Optional[str] = None
    postal_code: Optional[str] = None
    town: Optional[str] = None
    address_line_1: Optional[str] = None
    address_line_2: Optional[str] = None
    country_code: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def clean_fields(cls, v):
        """
        Trimmt alle Felder, leere Werte werden zu None.
        Eine PLZ kann so auch als int aus einer Datenquelle kommen.
        """
        return clean_text(v)

    @field_validator("country_code", mode="after")
    @classmethod
    def upper_country_code(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v

    @classmethod
    def structured(
        cls,
        name: str,
        postal_code: str,
        town: str,
        country_code: str,
        street: Optional[str] = None,
        house_no: Optional[str] = None,
    ) -> "Address":
        """Erzeugt eine strukturierte Adresse."""
        return cls(
            name=name,
            street=street,
            house_no=house_no,
            postal_code=postal_code,
            town=town,
            country_code=country_code,
        )

    @classmethod
    def combined(
        cls,
        name: str,
        address_line_2: str,
        country_code: str,
        address_line_1: Optional[str] = None,
    ) -> "Address":
        """Erzeugt eine Adresse mit zwei freien Adresszeilen."""
        return cls(
            name=name,
            address_line_1=address_line_1,
            address_line_2=address_line_2,
            country_code=country_code,
        )

    @property
    def type(self) -> AddressType:
        has_structured = any(getattr(self, f) is not None for f in STRUCTURED_FIELDS)
        has_combined = any(getattr(self, f) is not None for f in COMBINED_FIELDS)
        if has_structured and has_combined:
            return AddressType.CONFLICTING
        if has_structured:
            return AddressType.STRUCTURED
        if has_combined:
            return AddressType.COMBINED_ELEMENTS
        return AddressType.UNDETERMINED

    @property
    def is_empty(self) -> bool:
        """True, wenn kein einziges Feld gesetzt ist."""
        return all(value is None for value in self.model_dump().values())


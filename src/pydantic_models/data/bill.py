from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared_modules.checksum import (
    ReferenceType,
    classify_reference,
    create_iso11649_reference,
)
from shared_modules.iban import normalize_iban
from shared_modules.utils import clean_text, strip_whitespace

from .address import Address
from .alternative_scheme import AlternativeScheme
from .bill_format import BillFormat


class Version(str, Enum):
    """Version des QR-Rechnungsstandards (Wert wie im QR-Code-Text)."""
    V2_0 = "0200"


class Currency(str, Enum):
    CHF = "CHF"
    EUR = "EUR"


class Bill(BaseModel):
    """
    Daten einer QR-Rechnung.

    Unveränderliches Wertobjekt: Änderungen erfolgen über die with_*-Methoden,
    die eine neue, normalisierte Instanz zurückgeben. Geprüft wird nicht beim
    Erzeugen, sondern auf Abruf mit qr_bill.validate().

    Normalisierung beim Erzeugen:
    - Textfelder werden getrimmt, leere Werte werden zu None.
    - IBAN und Referenz verlieren alle Leerzeichen und werden gross geschrieben.
    - Ein vollständig leerer Zahlungspflichtiger gilt als nicht vorhanden.
    """
    model_config = ConfigDict(frozen=True)

    version: Version = Version.V2_0
    amount: Optional[Decimal] = None
    currency: Optional[str] = Currency.CHF.value
    account: Optional[str] = None
    creditor: Address = Field(default_factory=Address)
    reference: Optional[str] = None
    debtor: Optional[Address] = None
    unstructured_message: Optional[str] = None
    bill_information: Optional[str] = None
    alternative_schemes: Tuple[AlternativeScheme, ...] = ()
    format: BillFormat = Field(default_factory=BillFormat)

    @field_validator("account", mode="before")
    @classmethod
    def clean_account(cls, v):
        return normalize_iban(v) or None

    @field_validator("reference", mode="before")
    @classmethod
    def clean_reference(cls, v):
        return strip_whitespace(v).upper() or None

    @field_validator("currency", mode="before")
    @classmethod
    def clean_currency(cls, v):
        if isinstance(v, Enum):
            v = v.value
        text = clean_text(v)
        return text.upper() if text else None

    @field_validator("unstructured_message", "bill_information", mode="before")
    @classmethod
    def clean_texts(cls, v):
        return clean_text(v)

    @field_validator("debtor", mode="after")
    @classmethod
    def empty_debtor(cls, v: Optional[Address]) -> Optional[Address]:
        """
        Eine Adresse ohne jeden Inhalt ist gleichbedeutend mit keinem Zahlungspflichtigen.
        """
        return None if v is not None and v.is_empty else v

    @property
    def reference_type(self) -> Optional[ReferenceType]:
        """
        Referenztyp gemäss Form der Referenz, None bei unbekannter Form.
        """
        return classify_reference(self.reference)

    @property
    def amount_as_float(self) -> Optional[float]:
        return float(self.amount) if self.amount is not None else None

    def _replace(self, **changes) -> "Bill":
        return type(self)(**{**dict(self), **changes})

    def with_amount(self, amount: Optional[Decimal]) -> "Bill":
        return self._replace(amount=amount)

    def with_amount_from_float(self, amount: Optional[float]) -> "Bill":
        """
        Übernimmt einen float-Betrag, kaufmännisch auf 2 Nachkommastellen gerundet.
        """
        if amount is None:
            return self._replace(amount=None)
        rounded = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return self._replace(amount=rounded)

    def with_currency(self, currency: Optional[str]) -> "Bill":
        return self._replace(currency=currency)

    def with_account(self, account: Optional[str]) -> "Bill":
        return self._replace(account=account)

    def with_creditor(self, creditor: Address) -> "Bill":
        return self._replace(creditor=creditor)

    def with_reference(self, reference: Optional[str]) -> "Bill":
        return self._replace(reference=reference)

    def with_creditor_reference(self, raw_reference: str) -> "Bill":
        """
        Setzt eine Creditor Reference nach ISO 11649, gebildet aus raw_reference
        ("RF" + Prüfziffern + raw_reference ohne Leerzeichen).

        Raises:
            InvalidCharactersError: Falls raw_reference andere Zeichen als A-Z und 0-9 enthält.
        """
        return self._replace(reference=create_iso11649_reference(raw_reference))

    def with_debtor(self, debtor: Optional[Address]) -> "Bill":
        return self._replace(debtor=debtor)

    def with_unstructured_message(self, message: Optional[str]) -> "Bill":
        return self._replace(unstructured_message=message)

    def with_bill_information(self, bill_information: Optional[str]) -> "Bill":
        return self._replace(bill_information=bill_information)

    def with_alternative_schemes(self, schemes: Iterable[AlternativeScheme]) -> "Bill":
        return self._replace(alternative_schemes=tuple(schemes))

    def with_format(self, bill_format: BillFormat) -> "Bill":
        return self._replace(format=bill_format)

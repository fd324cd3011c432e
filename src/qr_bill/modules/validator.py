import re
from decimal import Decimal
from typing import List, Optional

from loguru import logger

from pydantic_models.data.address import Address, AddressType
from pydantic_models.data.alternative_scheme import scheme_name
from pydantic_models.data.bill import Bill, Currency
from pydantic_models.data.bill_format import GraphicsFormat, Language, OutputSize, SeparatorType
from pydantic_models.data.validation_result import ErrorKind, ValidationMessage, ValidationResult
from shared_modules.checksum import (
    ReferenceType,
    classify_reference,
    validate_iso11649_reference,
    validate_qr_reference,
)
from shared_modules.errors import InvalidIbanError, InvalidReferenceError
from shared_modules.iban import allowed_reference_types, validate_iban

MIN_AMOUNT = Decimal("0.01")
MAX_AMOUNT = Decimal("999999999.99")

MAX_NAME_LENGTH = 70
MAX_STREET_LENGTH = 70
MAX_HOUSE_NO_LENGTH = 16
MAX_POSTAL_CODE_LENGTH = 16
MAX_TOWN_LENGTH = 35
MAX_ADDRESS_LINE_LENGTH = 70
MAX_MESSAGE_LENGTH = 140
MAX_BILL_INFORMATION_LENGTH = 140
# Mitteilung und Rechnungsinformationen teilen sich ein Feld auf dem Zahlteil
MAX_ADDITIONAL_INFORMATION_LENGTH = 140
MAX_ALTERNATIVE_SCHEMES = 2
MAX_SCHEME_NAME_LENGTH = 70
MAX_SCHEME_PARAMETER_LENGTH = 100

ADDRESS_FIELD_LIMITS = (
    ("name", MAX_NAME_LENGTH),
    ("street", MAX_STREET_LENGTH),
    ("house_no", MAX_HOUSE_NO_LENGTH),
    ("postal_code", MAX_POSTAL_CODE_LENGTH),
    ("town", MAX_TOWN_LENGTH),
    ("address_line_1", MAX_ADDRESS_LINE_LENGTH),
    ("address_line_2", MAX_ADDRESS_LINE_LENGTH),
)

# Latin-1-Zeichen ausserhalb des zulässigen Zeichensatzes im Bereich À..ý
_EXCLUDED_LATIN1 = frozenset(
    {0xC3, 0xC5, 0xC6, 0xD0, 0xD5, 0xD7, 0xD8, 0xDD, 0xDE, 0xE3, 0xE5, 0xE6, 0xF0, 0xF5, 0xF7, 0xF8}
)

_COUNTRY_CODE_RE = re.compile(r"^[A-Z]{2}$")


def is_valid_character(ch: str) -> bool:
    """
    True, wenn ch zum Zeichensatz der QR-Rechnung (Version 2.0) gehört.
    """
    code = ord(ch)
    if 0x20 <= code <= 0x7E:
        return True
    if code in (0xA3, 0xB4):
        return True
    if code < 0xC0 or code > 0xFD:
        return False
    return code not in _EXCLUDED_LATIN1


def has_only_valid_characters(text: str) -> bool:
    return all(is_valid_character(ch) for ch in text)


class BillValidator:
    """
    Prüft eine QR-Rechnung Feld für Feld.
    Bricht nicht beim ersten Fehler ab, sondern sammelt alle Meldungen,
    damit ein Formular mehrere Probleme auf einmal anzeigen kann.
    """

    def __init__(self, bill: Bill):
        self.bill: Bill = bill
        self.messages: List[ValidationMessage] = []

    def validate(self) -> ValidationResult:
        """
        Führt alle Prüfungen aus und gibt das Ergebnis zurück.
        """
        self.messages = []
        self._validate_account()
        self._validate_amount()
        self._validate_currency()
        self._validate_address("creditor", self.bill.creditor)
        if self.bill.debtor is not None:
            self._validate_address("debtor", self.bill.debtor)
        self._validate_reference()
        self._validate_additional_information()
        self._validate_alternative_schemes()
        self._validate_format()

        result = ValidationResult(messages=tuple(self.messages))
        if result.has_errors:
            logger.debug(f"QR-Rechnung ungültig, {len(result.messages)} Fehler:\n{result}")
        return result

    def _add(self, field: str, kind: ErrorKind, message_key: str, message: str = "") -> None:
        self.messages.append(
            ValidationMessage(field=field, kind=kind, message_key=message_key, message=message)
        )

    def _check_mandatory(self, field: str, value: Optional[str], message_key: str = "field_value_missing") -> bool:
        if value is None:
            self._add(field, ErrorKind.MISSING_MANDATORY_FIELD, message_key, "Pflichtfeld fehlt")
            return False
        return True

    def _check_text(self, field: str, value: Optional[str], max_length: int) -> None:
        """Zeichensatz und Länge eines (optionalen) Textfeldes."""
        if value is None:
            return
        if not has_only_valid_characters(value):
            self._add(
                field,
                ErrorKind.INVALID_CHARACTERS,
                "invalid_characters",
                "Enthält Zeichen ausserhalb des zulässigen Zeichensatzes",
            )
        if len(value) > max_length:
            self._add(
                field,
                ErrorKind.FIELD_TOO_LONG,
                "field_value_too_long",
                f"Höchstens {max_length} Zeichen erlaubt, erhalten {len(value)}",
            )

    def _validate_account(self) -> None:
        account = self.bill.account
        if not self._check_mandatory("account", account):
            return
        try:
            validate_iban(account)
        except InvalidIbanError as e:
            self._add("account", ErrorKind.INVALID_IBAN, e.message_key, e.message)

    def _validate_amount(self) -> None:
        amount = self.bill.amount
        if amount is None:
            return
        if not amount.is_finite():
            self._add("amount", ErrorKind.INVALID_VALUE, "amount_invalid", "Betrag ist keine Zahl")
            return
        if not MIN_AMOUNT <= amount <= MAX_AMOUNT:
            self._add(
                "amount",
                ErrorKind.VALUE_OUT_OF_RANGE,
                "amount_outside_valid_range",
                f"Betrag muss zwischen {MIN_AMOUNT} und {MAX_AMOUNT} liegen",
            )
        if amount.as_tuple().exponent < -2:
            self._add(
                "amount",
                ErrorKind.INVALID_VALUE,
                "amount_scale_invalid",
                "Betrag darf höchstens 2 Nachkommastellen haben",
            )

    def _validate_currency(self) -> None:
        currency = self.bill.currency
        if not self._check_mandatory("currency", currency):
            return
        if currency not in {c.value for c in Currency}:
            self._add(
                "currency",
                ErrorKind.INVALID_VALUE,
                "currency_not_chf_or_eur",
                f"Währung muss CHF oder EUR sein, erhalten '{currency}'",
            )

    def _validate_address(self, prefix: str, address: Address) -> None:
        """
        Regeln für Zahlungsempfänger und Zahlungspflichtigen.
        Der Name und das Land sind immer Pflicht, PLZ und Ort bei der strukturierten,
        die zweite Adresszeile bei der kombinierten Variante.
        """
        address_type = address.type
        if address_type == AddressType.CONFLICTING:
            self._add(
                prefix,
                ErrorKind.AMBIGUOUS_ADDRESS_VARIANT,
                "address_type_conflict",
                "Strukturierte und kombinierte Adressfelder dürfen nicht gemischt werden",
            )

        self._check_mandatory(f"{prefix}.name", address.name)
        if address_type in (AddressType.STRUCTURED, AddressType.UNDETERMINED):
            self._check_mandatory(f"{prefix}.postal_code", address.postal_code)
            self._check_mandatory(f"{prefix}.town", address.town)
        elif address_type == AddressType.COMBINED_ELEMENTS:
            self._check_mandatory(f"{prefix}.address_line_2", address.address_line_2)

        if self._check_mandatory(f"{prefix}.country_code", address.country_code):
            code = address.country_code
            if not _COUNTRY_CODE_RE.match(code):
                self._add(
                    f"{prefix}.country_code",
                    ErrorKind.INVALID_VALUE,
                    "invalid_country_code",
                    f"Ungültiger Ländercode '{code}'",
                )

        for field_name, max_length in ADDRESS_FIELD_LIMITS:
            self._check_text(f"{prefix}.{field_name}", getattr(address, field_name), max_length)

    def _validate_reference(self) -> None:
        """
        Bei einer QR-IBAN ist eine gültige QR-Referenz Pflicht. Sonst ist die Referenz
        optional; ihre Form entscheidet, welche Prüfziffern geprüft werden.
        """
        reference = self.bill.reference
        allowed = allowed_reference_types(self.bill.account)
        reference_type = classify_reference(reference)

        if ReferenceType.NO_REFERENCE not in allowed and reference is None:
            self._add(
                "reference",
                ErrorKind.MISSING_MANDATORY_FIELD,
                "mandatory_for_qr_iban",
                "Referenz ist bei einer QR-IBAN Pflicht",
            )
            return
        if reference is None:
            return
        if reference_type is None:
            self._add(
                "reference",
                ErrorKind.INVALID_REFERENCE_TYPE,
                "ref_invalid",
                f"Weder QR-Referenz noch Creditor Reference: '{reference}'",
            )
            return
        if reference_type not in allowed:
            self._add(
                "reference",
                ErrorKind.INVALID_REFERENCE_TYPE,
                "cred_ref_invalid_use_for_qr_iban",
                "Bei einer QR-IBAN ist nur eine QR-Referenz zulässig",
            )
            return

        try:
            if reference_type == ReferenceType.QR_REFERENCE:
                validate_qr_reference(reference)
            else:
                validate_iso11649_reference(reference)
        except InvalidReferenceError as e:
            self._add("reference", ErrorKind.INVALID_REFERENCE, e.message_key, e.message)

    def _validate_additional_information(self) -> None:
        message = self.bill.unstructured_message
        bill_information = self.bill.bill_information
        self._check_text("unstructured_message", message, MAX_MESSAGE_LENGTH)
        self._check_text("bill_information", bill_information, MAX_BILL_INFORMATION_LENGTH)
        combined = len(message or "") + len(bill_information or "")
        if combined > MAX_ADDITIONAL_INFORMATION_LENGTH:
            self._add(
                "additional_information",
                ErrorKind.FIELD_TOO_LONG,
                "additional_info_too_long",
                f"Mitteilung und Rechnungsinformationen zusammen höchstens "
                f"{MAX_ADDITIONAL_INFORMATION_LENGTH} Zeichen, erhalten {combined}",
            )

    def _validate_alternative_schemes(self) -> None:
        schemes = self.bill.alternative_schemes
        if len(schemes) > MAX_ALTERNATIVE_SCHEMES:
            self._add(
                "alternative_schemes",
                ErrorKind.TOO_MANY_ELEMENTS,
                "alt_scheme_max_exceed",
                f"Höchstens {MAX_ALTERNATIVE_SCHEMES} alternative Verfahren erlaubt, erhalten {len(schemes)}",
            )
        for index, scheme in enumerate(schemes):
            prefix = f"alternative_schemes[{index}]"
            self._check_mandatory(f"{prefix}.name", scheme.name)
            self._check_mandatory(f"{prefix}.parameter", scheme.parameter)
            self._check_text(f"{prefix}.name", scheme.name, MAX_SCHEME_NAME_LENGTH)
            self._check_text(f"{prefix}.parameter", scheme.parameter, MAX_SCHEME_PARAMETER_LENGTH)
            if scheme.name and scheme.parameter and scheme.name != scheme_name(scheme.parameter):
                self._add(
                    f"{prefix}.name",
                    ErrorKind.INVALID_VALUE,
                    "alt_scheme_name_mismatch",
                    f"Name '{scheme.name}' passt nicht zur Kennung des Parameters",
                )

    def _validate_format(self) -> None:
        bill_format = self.bill.format
        checks = [
            ("format.language", bill_format.language, Language),
            ("format.output_size", bill_format.output_size, OutputSize),
            ("format.graphics_format", bill_format.graphics_format, GraphicsFormat),
            ("format.separator_type", bill_format.separator_type, SeparatorType),
        ]
        for field_name, value, enum_type in checks:
            if not self._check_mandatory(field_name, value):
                continue
            if value not in {e.value for e in enum_type}:
                self._add(
                    field_name,
                    ErrorKind.INVALID_VALUE,
                    "invalid_value",
                    f"Unbekannter Wert '{value}'",
                )


def validate(bill: Bill) -> ValidationResult:
    """
    Prüft eine Rechnung und gibt alle Fehler als ValidationResult zurück.
    Ungültige Eingaben lösen keine Exception aus.
    """
    return BillValidator(bill).validate()

"""
Kodierung und Dekodierung des Textes im Swiss QR Code (Version 2.0).

Aufbau (eine Zeile pro Feld, Trennzeichen LF):

     0  SPC            Kennung
     1  0200           Version
     2  1              Codierungsart
     3  IBAN
     4-10              Zahlungsempfänger (Adresstyp, Name, Strasse/Zeile 1,
                       Hausnummer/Zeile 2, PLZ, Ort, Land)
    11-17              Endgültiger Zahlungsempfänger, immer leer
    18  Betrag         leer = beliebiger Betrag
    19  Währung
    20-26              Zahlungspflichtiger, leer wenn nicht vorhanden
    27  QRR/SCOR/NON   Referenztyp
    28  Referenz
    29  Mitteilung
    30  EPD            Ende der Zahlungsdaten
    31  Rechnungsinformationen (optional)
    32-33              Alternative Verfahren (optional, je ein Parameter)
"""
import re
from decimal import Decimal
from typing import List, Optional

from loguru import logger
from pydantic import ValidationError

from pydantic_models.data.address import Address, AddressType
from pydantic_models.data.alternative_scheme import AlternativeScheme
from pydantic_models.data.bill import Bill, Version
from pydantic_models.data.bill_format import BillFormat
from shared_modules.checksum import ReferenceType, classify_reference
from shared_modules.errors import EncodingError, InvalidPayloadError

from .validator import MAX_ALTERNATIVE_SCHEMES, MAX_AMOUNT, MIN_AMOUNT, validate

HEADER = "SPC"
CODING_TYPE = "1"
TRAILER = "EPD"
SEPARATOR = "\n"

ADDRESS_LINES = 7
MANDATORY_LINES = 31
MAX_LINES = MANDATORY_LINES + 1 + MAX_ALTERNATIVE_SCHEMES

_AMOUNT_RE = re.compile(r"^[0-9]+(\.[0-9]+)?$")


def _format_amount(amount: Optional[Decimal]) -> str:
    return "" if amount is None else format(amount, ".2f")


def _encode_address(address: Optional[Address]) -> List[str]:
    if address is None:
        return [""] * ADDRESS_LINES
    if address.type == AddressType.COMBINED_ELEMENTS:
        return [
            AddressType.COMBINED_ELEMENTS.value,
            address.name or "",
            address.address_line_1 or "",
            address.address_line_2 or "",
            "",
            "",
            address.country_code or "",
        ]
    return [
        AddressType.STRUCTURED.value,
        address.name or "",
        address.street or "",
        address.house_no or "",
        address.postal_code or "",
        address.town or "",
        address.country_code or "",
    ]


def encode(bill: Bill) -> str:
    """
    Erzeugt den Text für den QR-Code.

    Raises:
        EncodingError: Falls die Rechnung die Validierung nicht besteht.
    """
    result = validate(bill)
    if result.has_errors:
        logger.error(f"Ungültige QR-Rechnung kann nicht kodiert werden:\n{result}")
        raise EncodingError(f"Ungültige QR-Rechnung kann nicht kodiert werden:\n{result}", result)

    lines = [HEADER, bill.version.value, CODING_TYPE, bill.account]
    lines += _encode_address(bill.creditor)
    lines += [""] * ADDRESS_LINES
    lines += [_format_amount(bill.amount), bill.currency]
    lines += _encode_address(bill.debtor)
    lines += [bill.reference_type.value, bill.reference or ""]
    lines += [bill.unstructured_message or "", TRAILER]
    if bill.bill_information is not None or bill.alternative_schemes:
        lines.append(bill.bill_information or "")
    lines += [scheme.parameter for scheme in bill.alternative_schemes]

    logger.debug(f"QR-Code-Text mit {len(lines)} Zeilen erzeugt.")
    return SEPARATOR.join(lines)


def _split_lines(text: str) -> List[str]:
    lines = text.replace("\r\n", "\n").split("\n")
    # Ein abschliessender Zeilenumbruch erzeugt keine zusätzliche Zeile
    if len(lines) > 1 and lines[-1] == "":
        lines.pop()
    return lines


def _decode_address(lines: List[str], label: str) -> Optional[Address]:
    address_type, name, line_a, line_b, postal_code, town, country_code = lines
    if address_type == "":
        if any(lines):
            raise InvalidPayloadError(f"{label}: Adresstyp fehlt")
        return None
    if address_type == AddressType.STRUCTURED.value:
        return Address(
            name=name,
            street=line_a,
            house_no=line_b,
            postal_code=postal_code,
            town=town,
            country_code=country_code,
        )
    if address_type == AddressType.COMBINED_ELEMENTS.value:
        if postal_code or town:
            raise InvalidPayloadError(f"{label}: PLZ und Ort sind bei Adresstyp K nicht erlaubt")
        return Address(
            name=name,
            address_line_1=line_a,
            address_line_2=line_b,
            country_code=country_code,
        )
    raise InvalidPayloadError(f"{label}: Unbekannter Adresstyp '{address_type}'")


def _decode_amount(text: str) -> Optional[Decimal]:
    if text == "":
        return None
    if not _AMOUNT_RE.match(text):
        raise InvalidPayloadError(f"Ungültiger Betrag '{text}'")
    amount = Decimal(text)
    if not MIN_AMOUNT <= amount <= MAX_AMOUNT:
        raise InvalidPayloadError(
            f"Betrag '{text}' liegt nicht zwischen {MIN_AMOUNT} und {MAX_AMOUNT}"
        )
    return amount


def _decode_reference(reference_type: str, reference: str) -> Optional[str]:
    try:
        expected = ReferenceType(reference_type)
    except ValueError:
        raise InvalidPayloadError(f"Unbekannter Referenztyp '{reference_type}'") from None
    if classify_reference(reference) != expected:
        raise InvalidPayloadError(
            f"Referenz '{reference}' passt nicht zum Referenztyp '{reference_type}'"
        )
    return reference or None


def decode(text: str, bill_format: Optional[BillFormat] = None) -> Bill:
    """
    Liest den Text eines QR-Codes und gibt die geprüfte Rechnung zurück.
    Die Darstellung ist nicht Teil des Textes; sie kann über bill_format mitgegeben werden.

    Raises:
        InvalidPayloadError: Bei Strukturfehlern oder wenn die Rechnung die Validierung
            nicht besteht. Es wird nie eine teilweise gefüllte Rechnung zurückgegeben.
    """
    lines = _split_lines(text)
    if len(lines) < MANDATORY_LINES:
        raise InvalidPayloadError(
            f"Zu wenige Zeilen: mindestens {MANDATORY_LINES} erwartet, erhalten {len(lines)}"
        )
    if len(lines) > MAX_LINES:
        raise InvalidPayloadError(
            f"Zu viele Zeilen: höchstens {MAX_LINES} erwartet (maximal "
            f"{MAX_ALTERNATIVE_SCHEMES} alternative Verfahren), erhalten {len(lines)}"
        )
    if lines[0] != HEADER:
        raise InvalidPayloadError(f"Ungültige Kennung '{lines[0]}', erwartet '{HEADER}'")
    try:
        version = Version(lines[1])
    except ValueError:
        raise InvalidPayloadError(f"Nicht unterstützte Version '{lines[1]}'") from None
    if lines[2] != CODING_TYPE:
        raise InvalidPayloadError(f"Nicht unterstützte Codierungsart '{lines[2]}'")
    if lines[30] != TRAILER:
        raise InvalidPayloadError(f"Ungültiges Ende der Zahlungsdaten '{lines[30]}', erwartet '{TRAILER}'")
    if any(lines[11:18]):
        raise InvalidPayloadError("Felder des endgültigen Zahlungsempfängers müssen leer sein")

    creditor = _decode_address(lines[4:11], "creditor")
    debtor = _decode_address(lines[20:27], "debtor")
    amount = _decode_amount(lines[18])
    reference = _decode_reference(lines[27], lines[28])
    bill_information = lines[31] if len(lines) > MANDATORY_LINES else None
    schemes = [
        AlternativeScheme.from_parameter(parameter) for parameter in lines[MANDATORY_LINES + 1:]
    ]

    try:
        bill = Bill(
            version=version,
            amount=amount,
            currency=lines[19],
            account=lines[3],
            creditor=creditor if creditor is not None else Address(),
            reference=reference,
            debtor=debtor,
            unstructured_message=lines[29],
            bill_information=bill_information,
            alternative_schemes=schemes,
            format=bill_format if bill_format is not None else BillFormat(),
        )
    except ValidationError as e:
        raise InvalidPayloadError(f"QR-Code-Text ergibt keine Rechnung: {e}") from e

    result = validate(bill)
    if result.has_errors:
        logger.warning(f"Dekodierte QR-Rechnung ist ungültig:\n{result}")
        raise InvalidPayloadError(f"Dekodierte QR-Rechnung ist ungültig:\n{result}", result)
    logger.debug("QR-Code-Text erfolgreich dekodiert.")
    return bill

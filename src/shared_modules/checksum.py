"""
Prüfziffern für die beiden Referenzarten der QR-Rechnung:

- QR-Referenz: 27 Ziffern, die letzte ist eine Prüfziffer nach Modulo 10 rekursiv.
- Creditor Reference nach ISO 11649: "RF" + 2 Prüfziffern (ISO 7064 Mod 97-10)
  + 1 bis 21 alphanumerische Zeichen.

Alle Funktionen sind reine Funktionen ohne Zustand.
"""
import re
from enum import Enum
from typing import Optional

from .errors import (
    FieldTooLongError,
    InvalidCharactersError,
    InvalidReferenceError,
)
from .utils import strip_whitespace

# Übertragstabelle für Modulo 10 rekursiv
_MOD10_TABLE = (0, 9, 4, 6, 8, 2, 7, 1, 3, 5)

QR_REFERENCE_LENGTH = 27
ISO11649_MAX_PAYLOAD = 21

_DIGITS_RE = re.compile(r"^[0-9]+$")
_QR_REFERENCE_RE = re.compile(r"^[0-9]{27}$")
_ALNUM_RE = re.compile(r"^[A-Z0-9]+$")
_ISO11649_RE = re.compile(r"^RF[0-9]{2}[A-Z0-9]{1,21}$")


class ReferenceType(str, Enum):
    """Referenztyp, wie er im QR-Code-Text steht."""

    QR_REFERENCE = "QRR"
    CREDITOR_REFERENCE = "SCOR"
    NO_REFERENCE = "NON"


def compute_qr_reference_check_digit(digits: str) -> int:
    """
    Berechnet die Prüfziffer (Modulo 10 rekursiv) über eine Ziffernfolge.

    Raises:
        InvalidCharactersError: Falls digits etwas anderes als Ziffern enthält.
    """
    if not _DIGITS_RE.match(digits):
        raise InvalidCharactersError(f"Nur Ziffern erlaubt: '{digits}'")
    carry = 0
    for ch in digits:
        carry = _MOD10_TABLE[(carry + int(ch)) % 10]
    return (10 - carry) % 10


def validate_qr_reference(reference: str) -> str:
    """
    Prüft eine QR-Referenz und gibt sie ohne Leerzeichen zurück.

    Raises:
        InvalidReferenceError: Falsche Länge, Nicht-Ziffern oder falsche Prüfziffer.
    """
    cleaned = strip_whitespace(reference)
    if not _QR_REFERENCE_RE.match(cleaned):
        raise InvalidReferenceError(
            f"QR-Referenz muss aus {QR_REFERENCE_LENGTH} Ziffern bestehen: '{reference}'",
            "qr_ref_invalid",
        )
    if compute_qr_reference_check_digit(cleaned[:-1]) != int(cleaned[-1]):
        raise InvalidReferenceError(
            f"Ungültige Prüfziffer in QR-Referenz: '{reference}'", "qr_ref_invalid"
        )
    return cleaned


def create_qr_reference(raw_reference: str) -> str:
    """
    Erzeugt eine QR-Referenz aus bis zu 26 Ziffern.
    Die Ziffern werden links mit Nullen aufgefüllt, danach folgt die Prüfziffer.
    """
    cleaned = strip_whitespace(raw_reference)
    if not _DIGITS_RE.match(cleaned):
        raise InvalidCharactersError(
            f"QR-Referenz darf nur Ziffern enthalten: '{raw_reference}'"
        )
    if len(cleaned) > QR_REFERENCE_LENGTH - 1:
        raise FieldTooLongError(
            f"QR-Referenz ohne Prüfziffer darf höchstens {QR_REFERENCE_LENGTH - 1} Ziffern haben"
        )
    base = cleaned.zfill(QR_REFERENCE_LENGTH - 1)
    return f"{base}{compute_qr_reference_check_digit(base)}"


def _alnum_to_numeric(value: str) -> str:
    # A=10 ... Z=35
    return "".join(str(int(ch, 36)) for ch in value)


def _mod97(numeric_str: str) -> int:
    remainder = 0
    for ch in numeric_str:
        remainder = (remainder * 10 + int(ch)) % 97
    return remainder


def create_iso11649_reference(raw_reference: str) -> str:
    """
    Erzeugt eine Creditor Reference nach ISO 11649 ("RF" + Prüfziffern + Referenz).
    Leerzeichen werden entfernt, Kleinbuchstaben in Grossbuchstaben umgewandelt.

    Raises:
        InvalidCharactersError: Falls Zeichen ausserhalb von A-Z und 0-9 vorkommen.
        InvalidReferenceError: Falls keine Zeichen übrig bleiben.
        FieldTooLongError: Falls mehr als 21 Zeichen übrig bleiben.
    """
    payload = strip_whitespace(raw_reference).upper()
    if not payload:
        raise InvalidReferenceError("Leere Referenz", "cred_ref_invalid")
    if not _ALNUM_RE.match(payload):
        raise InvalidCharactersError(
            f"Referenz enthält ungültige Zeichen: '{raw_reference}'"
        )
    if len(payload) > ISO11649_MAX_PAYLOAD:
        raise FieldTooLongError(
            f"Referenz darf höchstens {ISO11649_MAX_PAYLOAD} Zeichen haben: '{raw_reference}'"
        )
    check = 98 - _mod97(_alnum_to_numeric(payload + "RF00"))
    return f"RF{check:02d}{payload}"


def validate_iso11649_reference(reference: str) -> str:
    """
    Prüft eine Creditor Reference nach ISO 11649 und gibt sie bereinigt zurück.

    Raises:
        InvalidReferenceError: Falsches Format oder falsche Prüfziffern.
    """
    cleaned = strip_whitespace(reference).upper()
    if not _ISO11649_RE.match(cleaned):
        raise InvalidReferenceError(
            f"Ungültiges Format der Creditor Reference: '{reference}'", "cred_ref_invalid"
        )
    if _mod97(_alnum_to_numeric(cleaned[4:] + cleaned[:4])) != 1:
        raise InvalidReferenceError(
            f"Ungültige Prüfziffern in Creditor Reference: '{reference}'", "cred_ref_invalid"
        )
    return cleaned


def is_valid_qr_reference(reference: Optional[str]) -> bool:
    if reference is None:
        return False
    try:
        validate_qr_reference(reference)
    except InvalidReferenceError:
        return False
    return True


def is_valid_iso11649_reference(reference: Optional[str]) -> bool:
    if reference is None:
        return False
    try:
        validate_iso11649_reference(reference)
    except InvalidReferenceError:
        return False
    return True


def classify_reference(reference: Optional[str]) -> Optional[ReferenceType]:
    """
    Bestimmt den Referenztyp allein anhand der Form (ohne Prüfziffern).
    Gibt None zurück, wenn die Form zu keinem Typ passt.
    """
    if reference is None:
        return ReferenceType.NO_REFERENCE
    cleaned = strip_whitespace(reference).upper()
    if not cleaned:
        return ReferenceType.NO_REFERENCE
    if _ISO11649_RE.match(cleaned):
        return ReferenceType.CREDITOR_REFERENCE
    if _QR_REFERENCE_RE.match(cleaned):
        return ReferenceType.QR_REFERENCE
    return None


def format_reference(reference: str) -> str:
    """
    Formatiert eine Referenz für die Anzeige:
    QR-Referenz als 2 + 5x5 Ziffern, Creditor Reference in Viererblöcken.
    """
    cleaned = strip_whitespace(reference).upper()
    if cleaned.startswith("RF"):
        return " ".join(cleaned[i:i + 4] for i in range(0, len(cleaned), 4))
    head, rest = cleaned[:2], cleaned[2:]
    blocks = [rest[i:i + 5] for i in range(0, len(rest), 5)]
    return " ".join([head] + blocks) if rest else head

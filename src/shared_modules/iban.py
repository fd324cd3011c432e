import re
from typing import FrozenSet, Optional

import schwifty
from schwifty.exceptions import SchwiftyException

from .checksum import ReferenceType
from .errors import InvalidIbanError
from .utils import strip_whitespace

IBAN_LENGTH = 21
SUPPORTED_COUNTRIES = ("CH", "LI")
# Reservierter IID-Bereich für QR-IBANs
QR_IID_RANGE = (30000, 31999)

_IID_RE = re.compile(r"^[0-9]{5}$")

_QR_IBAN_REFERENCES: FrozenSet[ReferenceType] = frozenset({ReferenceType.QR_REFERENCE})
_IBAN_REFERENCES: FrozenSet[ReferenceType] = frozenset(
    {
        ReferenceType.QR_REFERENCE,
        ReferenceType.CREDITOR_REFERENCE,
        ReferenceType.NO_REFERENCE,
    }
)


def normalize_iban(value: Optional[str]) -> str:
    """Entfernt Leerzeichen und wandelt in Grossbuchstaben um."""
    return strip_whitespace(value).upper()


def validate_iban(iban: str) -> str:
    """
    Prüft eine IBAN aus der Schweiz oder Liechtenstein und gibt sie normalisiert zurück.

    Raises:
        InvalidIbanError: Falsche Länge, falscher Ländercode, ungültige Zeichen oder Prüfsumme.
    """
    normalized = normalize_iban(iban)
    if normalized[:2] not in SUPPORTED_COUNTRIES:
        raise InvalidIbanError(
            f"IBAN muss aus der Schweiz oder Liechtenstein stammen: '{iban}'",
            "account_iban_not_from_ch_or_li",
        )
    if len(normalized) != IBAN_LENGTH:
        raise InvalidIbanError(
            f"IBAN muss {IBAN_LENGTH} Zeichen lang sein, erhalten {len(normalized)}: '{iban}'"
        )
    try:
        schwifty.IBAN(normalized)
    except SchwiftyException as e:
        raise InvalidIbanError(f"Ungültige IBAN '{iban}': {e}") from e
    return normalized


def is_valid_iban(iban: Optional[str]) -> bool:
    if iban is None:
        return False
    try:
        validate_iban(iban)
    except InvalidIbanError:
        return False
    return True


def is_qr_iban(iban: Optional[str]) -> bool:
    """
    True, wenn die IID (Stellen 5 bis 9) im reservierten QR-IID-Bereich liegt.
    Die Prüfsumme wird hier nicht geprüft.
    """
    iid = normalize_iban(iban)[4:9]
    if not _IID_RE.match(iid):
        return False
    return QR_IID_RANGE[0] <= int(iid) <= QR_IID_RANGE[1]


def allowed_reference_types(iban: Optional[str]) -> FrozenSet[ReferenceType]:
    """
    Zulässige Referenztypen für ein Konto.
    Eine QR-IBAN verlangt zwingend eine QR-Referenz.
    """
    return _QR_IBAN_REFERENCES if is_qr_iban(iban) else _IBAN_REFERENCES


def format_iban(iban: str) -> str:
    """Formatiert eine IBAN in Viererblöcken, z.B. 'CH44 3199 9123 0008 8901 2'."""
    normalized = normalize_iban(iban)
    return " ".join(normalized[i:i + 4] for i in range(0, len(normalized), 4))

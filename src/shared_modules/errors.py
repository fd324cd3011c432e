from typing import Any, Optional


class QrBillError(ValueError):
    """
    Basisklasse aller Fehler rund um QR-Rechnungen.
    message_key ist ein stabiler Schlüssel, den eine Oberfläche übersetzen kann.
    """

    default_key = "invalid_value"

    def __init__(self, message: str, message_key: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.message_key = message_key or self.default_key


class InvalidIbanError(QrBillError):
    default_key = "account_iban_invalid"


class InvalidReferenceError(QrBillError):
    default_key = "ref_invalid"


class InvalidReferenceTypeError(QrBillError):
    default_key = "ref_type_invalid"


class InvalidCharactersError(QrBillError):
    default_key = "invalid_characters"


class FieldTooLongError(QrBillError):
    default_key = "field_value_too_long"


class InvalidPayloadError(QrBillError):
    """
    Strukturfehler beim Dekodieren des QR-Code-Textes.
    Schlägt erst die Feldvalidierung fehl, liegt das Ergebnis in validation_result.
    """

    default_key = "invalid_payload"

    def __init__(self, message: str, validation_result: Any = None):
        super().__init__(message)
        self.validation_result = validation_result


class EncodingError(QrBillError):
    """
    Programmierfehler: Es wurde versucht, eine ungültige Rechnung zu kodieren.
    """

    default_key = "encoding_error"

    def __init__(self, message: str, validation_result: Any = None):
        super().__init__(message)
        self.validation_result = validation_result

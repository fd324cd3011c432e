from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from shared_modules.utils import clean_text


class Language(str, Enum):
    DE = "DE"
    EN = "EN"
    FR = "FR"
    IT = "IT"
    RM = "RM"


class OutputSize(str, Enum):
    A4_PORTRAIT_SHEET = "A4_PORTRAIT_SHEET"
    QR_BILL_ONLY = "QR_BILL_ONLY"
    QR_BILL_EXTRA_SPACE = "QR_BILL_EXTRA_SPACE"
    QR_CODE_ONLY = "QR_CODE_ONLY"
    QR_CODE_WITH_QUIET_ZONE = "QR_CODE_WITH_QUIET_ZONE"


class GraphicsFormat(str, Enum):
    PDF = "PDF"
    SVG = "SVG"
    PNG = "PNG"


class SeparatorType(str, Enum):
    NONE = "NONE"
    SOLID_LINE = "SOLID_LINE"
    SOLID_LINE_WITH_SCISSORS = "SOLID_LINE_WITH_SCISSORS"
    DASHED_LINE = "DASHED_LINE"
    DASHED_LINE_WITH_SCISSORS = "DASHED_LINE_WITH_SCISSORS"
    DOTTED_LINE = "DOTTED_LINE"
    DOTTED_LINE_WITH_SCISSORS = "DOTTED_LINE_WITH_SCISSORS"


class BillFormat(BaseModel):
    """
    Darstellung der Rechnung (Sprache, Ausgabegrösse, Grafikformat, Trennlinie).
    Wird vom Kern nur durchgereicht; die Werte werden lediglich gegen ihre
    Aufzählungen geprüft. Die Felder bleiben str, damit ein unbekannter Wert
    aus einem Formular als Validierungsfehler gemeldet werden kann.
    """
    model_config = ConfigDict(frozen=True)

    language: Optional[str] = Language.EN.value
    output_size: Optional[str] = OutputSize.QR_BILL_ONLY.value
    graphics_format: Optional[str] = GraphicsFormat.SVG.value
    separator_type: Optional[str] = SeparatorType.DASHED_LINE_WITH_SCISSORS.value
    font_family: Optional[str] = 'Helvetica,Arial,"Liberation Sans"'

    @field_validator("language", "output_size", "graphics_format", "separator_type", mode="before")
    @classmethod
    def upper_enum_fields(cls, v):
        if isinstance(v, Enum):
            v = v.value
        text = clean_text(v)
        return text.upper() if text else None

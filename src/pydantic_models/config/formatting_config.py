from typing import Optional
from pydantic import BaseModel

class FormattingConfig(BaseModel):
    """
    Vorgaben für neue Rechnungen: Währung und Darstellung (BillFormat).
    """
    currency: Optional[str] = "CHF"
    language: Optional[str] = "DE"
    output_size: Optional[str] = "QR_BILL_ONLY"
    graphics_format: Optional[str] = "PNG"
    separator_type: Optional[str] = "DASHED_LINE_WITH_SCISSORS"

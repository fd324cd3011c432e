from typing import Optional
from pydantic import BaseModel

class LoggingConfig(BaseModel):
    log_file: Optional[str] = "qr_bill.log"     # Defaultwert, None = nur Konsole
    log_level: Optional[str] = "INFO"           # Defaultwert

from typing import Optional
from pydantic import BaseModel

class StructureConfig(BaseModel):
    """
    Modell für die Struktur-Konfiguration des Projekts.

    Attribute:
        prj_root (str): Wurzelverzeichnis des Projekts.
        output_path (Optional[str]): Ausgabeverzeichnis für QR-Code-Texte und PNGs (Standard: "output").
        log_path (Optional[str]): Pfad zum Log-Verzeichnis relativ zu prj_root (Standard: ".logs").
    """
    prj_root: str = "."
    output_path: Optional[str] = "output"
    log_path: Optional[str] = ".logs"

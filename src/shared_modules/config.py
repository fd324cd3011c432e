import sys
from pathlib import Path
from typing import Any, Dict, Optional, Type

import yaml
from loguru import logger
from pydantic import BaseModel

from pydantic_models.config.formatting_config import FormattingConfig
from pydantic_models.config.logging_config import LoggingConfig
from pydantic_models.config.service_provider_config import ServiceProviderConfig
from pydantic_models.config.structure_config import StructureConfig
from pydantic_models.data.bill import Currency
from pydantic_models.data.bill_format import GraphicsFormat, Language, OutputSize, SeparatorType

from .errors import InvalidIbanError
from .iban import validate_iban


class Config:
    """
    Singleton für das Laden und Prüfen der Konfiguration.
    Nutzt statische Pydantic-Modelle für alle Abschnitte.
    Prüft beim Laden, ob Zahlungsempfänger und Vorgaben eine gültige QR-Rechnung ergeben können.
    """

    _instance: Optional["Config"] = None

    def __new__(cls, config_path: Path):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Path):
        if self._initialized and self.config_path == config_path:
            return
        # Fallback-Logger für Fehler beim Laden der Config
        logger.remove()
        logger.add(sys.stderr, level="WARNING")
        self.config_path = config_path
        try:
            self.raw_config: Dict[str, Any] = self._load_config()
            self.logging = self._parse_section(self.raw_config, "logging", LoggingConfig)
            self._setup_logging()
            logger.debug(f"Lade Konfiguration von {config_path}")
        except Exception as e:
            logger.error(f"Fehler beim Laden der Konfiguration: {e}")
            raise

        self.structure = self._parse_section(self.raw_config, "structure", StructureConfig)
        self.service_provider = self._parse_section(self.raw_config, "service_provider", ServiceProviderConfig)
        self.formatting = self._parse_section(self.raw_config, "formatting", FormattingConfig)

        self._validate_service_provider()
        self._validate_formatting()
        logger.debug("Konfiguration erfolgreich geladen und validiert.")
        self._initialized = True

    @classmethod
    def reset(cls) -> None:
        """
        Verwirft die Singleton-Instanz, z.B. um eine andere Config-Datei zu laden.
        """
        cls._instance = None

    def _setup_logging(self) -> None:
        """
        Initialisiert loguru mit den Einstellungen aus der Config-Datei.
        """
        logger.remove()
        log_file = getattr(self.logging, "log_file", None)
        log_level = getattr(self.logging, "log_level", None) or "DEBUG"
        if log_file:
            logger.add(log_file, level=log_level, rotation="10 MB", retention="10 days")
        logger.add(sys.stderr, level=log_level)

    def _load_config(self) -> Dict[str, Any]:
        """
        Lädt die YAML-Konfigurationsdatei.
        """
        if not Path(self.config_path).exists():
            raise FileNotFoundError(f"Konfigurationsdatei nicht gefunden: {self.config_path}")
        with open(self.config_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    def _parse_section(self, config: Dict[str, Any], section: str, model: Type[BaseModel]) -> Any:
        """
        Parst einen Abschnitt der Config mit dem passenden Pydantic-Modell.
        """
        data = config.get(section) or {}
        logger.debug(f"Parsiere Abschnitt '{section}': {data}")
        return model(**data)

    def _validate_service_provider(self) -> None:
        """
        Prüft einmalig die Angaben zum Zahlungsempfänger. Scheitern die Prüfungen,
        wird die Konfiguration verworfen.
        """
        provider = self.service_provider
        if not provider.name:
            logger.error("service_provider.name ist nicht gesetzt.")
            raise ValueError("service_provider.name ist Pflicht.")
        if not provider.iban:
            logger.error("service_provider.iban ist nicht gesetzt.")
            raise ValueError("service_provider.iban ist Pflicht.")
        try:
            validate_iban(provider.iban)
        except InvalidIbanError as e:
            logger.error(f"Ungültige IBAN des Zahlungsempfängers: {e}")
            raise ValueError(f"service_provider.iban ist ungültig: {e}") from e

    def _validate_formatting(self) -> None:
        """
        Prüft, ob die Vorgaben für Währung und Darstellung bekannte Werte sind.
        """
        checks = [
            ("formatting.currency", self.formatting.currency, Currency),
            ("formatting.language", self.formatting.language, Language),
            ("formatting.output_size", self.formatting.output_size, OutputSize),
            ("formatting.graphics_format", self.formatting.graphics_format, GraphicsFormat),
            ("formatting.separator_type", self.formatting.separator_type, SeparatorType),
        ]
        for field_name, value, enum_type in checks:
            allowed = [e.value for e in enum_type]
            if value is None or value.upper() not in allowed:
                logger.error(f"{field_name} hat den ungültigen Wert '{value}'.")
                raise ValueError(f"{field_name} muss einer von {allowed} sein.")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Allgemeiner Getter für beliebige Felder (dot-notation für verschachtelte Felder).
        """
        parts = key.split(".")
        val = self.raw_config
        for part in parts:
            if isinstance(val, dict) and part in val:
                val = val[part]
            else:
                logger.debug(f"Feld '{key}' nicht gefunden, Rückgabe Default: {default}")
                return default
        return val

if __name__ == "__main__":
    config_path = (
        Path(__file__).parent.parent.parent / ".config" / "qr_bill_config.yaml"
    )
    config = Config(config_path)
    logger.info("Zahlungsempfänger: {}", config.service_provider.name)
    # Validierung erfolgt beim Laden automatisch

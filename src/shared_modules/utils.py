import re
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Optional

from loguru import logger

_WHITESPACE_RE = re.compile(r"\s+")


def safe_str(val) -> str:
    """
    Gibt immer einen String zurück, auch wenn val None oder numerisch ist.
    """
    return "" if val is None else str(val)


def clean_text(val: Any) -> Optional[str]:
    """
    Trimmt Textfelder. Leere Eingaben (None, "", nur Leerzeichen) werden zu None.
    Zahlen (z.B. eine PLZ aus einer Tabelle) werden vorher in str umgewandelt.
    """
    text = safe_str(val).strip()
    return text or None


def strip_whitespace(val: Any) -> str:
    """Entfernt sämtliche Leerzeichen, Tabs und Zeilenumbrüche."""
    return _WHITESPACE_RE.sub("", safe_str(val))


@contextmanager
def log_exceptions(msg: str, continue_on_error: bool = True) -> Generator[None, None, None]:
    """
    Context-Manager für das Logging von Ausnahmen.
    Loggt eine Fehlermeldung und entscheidet, ob die Exception weitergereicht wird.

    Args:
        msg (str): Nachricht für das Logging im Fehlerfall.
        continue_on_error (bool): Bei False wird die Exception erneut ausgelöst, ansonsten nur geloggt.

    Beispiel:
        with log_exceptions("QR-Code konnte nicht gespeichert werden", continue_on_error=False):
            write_qr_code(payload, output_png)
    """
    try:
        yield
    except Exception as e:
        logger.error(f"{msg}: {e}")
        if not continue_on_error:
            raise


def ensure_dir(path: Path) -> Path:
    """Erzeugt ein Verzeichnis (rekursiv), falls es fehlt, und gibt den Pfad zurück."""
    path.mkdir(parents=True, exist_ok=True)
    return path

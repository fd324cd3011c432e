import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import qrcode
import yaml
from loguru import logger
from rich import print

from pydantic_models.data.address import Address
from pydantic_models.data.alternative_scheme import AlternativeScheme
from pydantic_models.data.bill import Bill
from qr_bill.modules.bill_factory import BillFactory
from qr_bill.modules.payload_codec import encode
from qr_bill.modules.validator import validate
from shared_modules.checksum import format_reference
from shared_modules.config import Config
from shared_modules.iban import format_iban
from shared_modules.utils import ensure_dir, log_exceptions


def load_bill(bill_path: Path, factory: BillFactory) -> Bill:
    """
    Liest die Rechnungsdaten aus einer YAML-Datei und ergänzt sie mit den Vorgaben der Factory.

    Erwartete Schlüssel (alle optional):
        amount, debtor (Adressfelder), reference_seed, unstructured_message,
        bill_information, alternative_schemes (Liste mit name/parameter)
    """
    with open(bill_path, "r", encoding="utf-8") as f:
        data: Dict[str, Any] = yaml.safe_load(f) or {}
    logger.debug(f"Rechnungsdaten aus {bill_path}: {data}")

    debtor_data = data.get("debtor")
    schemes_data: List[Dict[str, Any]] = data.get("alternative_schemes") or []
    amount = data.get("amount")
    return factory.create_bill(
        amount=str(amount) if amount is not None else None,
        debtor=Address(**debtor_data) if debtor_data else None,
        reference_seed=str(data["reference_seed"]) if data.get("reference_seed") else None,
        unstructured_message=data.get("unstructured_message"),
        bill_information=data.get("bill_information"),
        alternative_schemes=[AlternativeScheme(**scheme) for scheme in schemes_data],
    )


def write_qr_code(payload: str, output_png: Path) -> Path:
    """
    Übergibt den QR-Code-Text an qrcode und speichert das Symbol als PNG.
    Fehlerkorrektur M, wie für die QR-Rechnung vorgeschrieben.
    """
    ensure_dir(output_png.parent)
    img = qrcode.make(payload, error_correction=qrcode.constants.ERROR_CORRECT_M)
    img.save(str(output_png))
    return output_png


def main(argv: Optional[List[str]] = None) -> int:
    """
    Einstiegspunkt: QR-Rechnung aus einer YAML-Datei erstellen.
    Aufruf: qr-rechnung <rechnung.yaml> [<config.yaml>]
    """
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print("Bitte Pfad zur Rechnungsdatei übergeben (z.B. rechnung.yaml)")
        return 2

    bill_path = Path(args[0])
    config_path: Path = (
        Path(args[1]) if len(args) > 1
        else Path(__file__).parents[2] / ".config" / "qr_bill_config.yaml"
    )
    config = Config(config_path)
    factory = BillFactory(config)
    bill = load_bill(bill_path, factory)

    result = validate(bill)
    if result.has_errors:
        print("[bold red]Rechnung ist ungültig:[/bold red]")
        for message in result.messages:
            print(f"  [red]{message}[/red]")
        return 1

    payload = encode(bill)
    output_path = ensure_dir(Path(config.structure.prj_root) / (config.structure.output_path or "output"))
    txt_file = output_path / f"{bill_path.stem}.txt"
    txt_file.write_text(payload, encoding="utf-8")

    png_file = output_path / f"{bill_path.stem}.png"
    with log_exceptions("QR-Code konnte nicht gespeichert werden", continue_on_error=False):
        write_qr_code(payload, png_file)

    print(f"[green]Konto:[/green] {format_iban(bill.account)}")
    if bill.reference:
        print(f"[green]Referenz:[/green] {format_reference(bill.reference)}")
    logger.success(f"QR-Rechnung erstellt: {txt_file}, {png_file}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

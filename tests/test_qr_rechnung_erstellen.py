from __future__ import annotations

from pathlib import Path

import yaml

from qr_bill import decode
from qr_bill.qr_rechnung_erstellen import main

BILL_DATA = {
    "amount": 1949.75,
    "reference_seed": "21000000000313947143000901",
    "unstructured_message": "Auftrag vom 15.06.2020",
    "debtor": {
        "name": "Pia-Maria Rutschmann-Schnyder",
        "street": "Grosse Marktgasse",
        "house_no": "28",
        "postal_code": "9400",
        "town": "Rorschach",
        "country_code": "CH",
    },
    "alternative_schemes": [{"name": "eBill", "parameter": "eBill/B/41010560425610173"}],
}


def _write_bill(tmp_path: Path, data) -> Path:
    path = tmp_path / "rechnung.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def test_main_writes_payload_and_png(tmp_path, write_config):
    config_path = write_config(structure={"prj_root": str(tmp_path)})
    bill_path = _write_bill(tmp_path, BILL_DATA)

    assert main([str(bill_path), str(config_path)]) == 0

    payload = (tmp_path / "output" / "rechnung.txt").read_text(encoding="utf-8")
    bill = decode(payload)
    assert str(bill.amount) == "1949.75"
    assert bill.reference == "210000000003139471430009017"
    assert bill.creditor.name == "Wegpiraten GmbH"
    assert bill.debtor.town == "Rorschach"
    assert [s.name for s in bill.alternative_schemes] == ["eBill"]

    png = (tmp_path / "output" / "rechnung.png").read_bytes()
    assert png.startswith(b"\x89PNG\r\n\x1a\n")


def test_main_rejects_invalid_bill(tmp_path, write_config):
    config_path = write_config(structure={"prj_root": str(tmp_path)})
    bill_path = _write_bill(tmp_path, {**BILL_DATA, "amount": 0, "unstructured_message": "x" * 141})

    assert main([str(bill_path), str(config_path)]) == 1
    assert not (tmp_path / "output" / "rechnung.txt").exists()


def test_main_without_arguments():
    assert main([]) == 2

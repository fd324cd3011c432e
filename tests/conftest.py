from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Any, Dict

import pytest
import yaml
from loguru import logger

from pydantic_models.data.address import Address
from pydantic_models.data.alternative_scheme import AlternativeScheme
from pydantic_models.data.bill import Bill
from shared_modules.config import Config

QR_IBAN = "CH4431999123000889012"
QR_IBAN_LOWEST_IID = "CH0430000001234567890"
IBAN = "CH9300762011623852957"
IBAN_IID_32000 = "CH9632000001234567890"
LI_IBAN = "LI21088100002324013AA"

QR_REFERENCE = "210000000003139471430009017"
CREDITOR_REFERENCE = "RF18539007547034"


@pytest.fixture
def creditor() -> Address:
    return Address.structured(
        name="Robert Schneider AG",
        street="Rue du Lac",
        house_no="1268",
        postal_code="2501",
        town="Biel",
        country_code="CH",
    )


@pytest.fixture
def debtor() -> Address:
    return Address.structured(
        name="Pia-Maria Rutschmann-Schnyder",
        street="Grosse Marktgasse",
        house_no="28",
        postal_code="9400",
        town="Rorschach",
        country_code="CH",
    )


@pytest.fixture
def bill(creditor: Address) -> Bill:
    """Minimale gültige Rechnung mit QR-IBAN und QR-Referenz."""
    return Bill(
        account=QR_IBAN,
        creditor=creditor,
        reference=QR_REFERENCE,
    )


@pytest.fixture
def full_bill(creditor: Address, debtor: Address) -> Bill:
    return Bill(
        amount=Decimal("1949.75"),
        currency="CHF",
        account=QR_IBAN,
        creditor=creditor,
        reference=QR_REFERENCE,
        debtor=debtor,
        unstructured_message="Auftrag vom 15.06.2020",
        bill_information="//S1/10/10201409/11/200701/20/140.000-53",
        alternative_schemes=[
            AlternativeScheme(name="eBill", parameter="eBill/B/41010560425610173"),
            AlternativeScheme(name="UV", parameter="UV;UltraPay005;12345"),
        ],
    )


def config_data(**overrides: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "logging": {"log_file": None, "log_level": "DEBUG"},
        "structure": {"prj_root": ".", "output_path": "output"},
        "service_provider": {
            "name": "Wegpiraten GmbH",
            "street": "Alpenstrasse",
            "house_no": "2",
            "zip_code": "3800",
            "city": "Interlaken",
            "country_code": "CH",
            "iban": "CH44 3199 9123 0008 8901 2",
        },
        "formatting": {
            "currency": "CHF",
            "language": "DE",
            "output_size": "QR_BILL_ONLY",
            "graphics_format": "PNG",
            "separator_type": "DASHED_LINE_WITH_SCISSORS",
        },
    }
    for section, values in overrides.items():
        data[section] = {**data.get(section, {}), **values}
    return data


@pytest.fixture
def write_config(tmp_path: Path):
    def _write(**overrides: Any) -> Path:
        path = tmp_path / "qr_bill_config.yaml"
        path.write_text(yaml.safe_dump(config_data(**overrides)), encoding="utf-8")
        return path
    return _write


@pytest.fixture(autouse=True)
def reset_config():
    Config.reset()
    yield
    Config.reset()
    logger.remove()

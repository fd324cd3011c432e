from __future__ import annotations

from decimal import Decimal

import pytest

from pydantic_models.data.address import Address
from pydantic_models.data.alternative_scheme import AlternativeScheme
from pydantic_models.data.bill import Bill
from pydantic_models.data.bill_format import BillFormat
from pydantic_models.data.validation_result import ErrorKind
from qr_bill import validate

from conftest import (
    CREDITOR_REFERENCE,
    IBAN,
    IBAN_IID_32000,
    LI_IBAN,
    QR_IBAN,
    QR_IBAN_LOWEST_IID,
    QR_REFERENCE,
)


def test_valid_bills(bill, full_bill):
    assert validate(bill).is_valid
    assert validate(full_bill).is_valid


def test_validation_is_idempotent(full_bill):
    broken = full_bill.with_account("CH0000000000000000000").with_amount(Decimal("0"))
    assert validate(broken) == validate(broken)
    assert validate(full_bill) == validate(full_bill)


def test_errors_are_accumulated_in_order(creditor):
    bill = Bill(
        account="CH9300762011623852958",
        amount=Decimal("0.00"),
        currency="USD",
        creditor=creditor,
        reference="ABC",
    )
    result = validate(bill)
    assert [m.field for m in result.messages] == ["account", "amount", "currency", "reference"]
    assert [m.kind for m in result.messages] == [
        ErrorKind.INVALID_IBAN,
        ErrorKind.VALUE_OUT_OF_RANGE,
        ErrorKind.INVALID_VALUE,
        ErrorKind.INVALID_REFERENCE_TYPE,
    ]
    assert str(result).splitlines()[0].startswith("account: ")


def test_missing_account(creditor):
    result = validate(Bill(creditor=creditor))
    assert result.kinds("account") == [ErrorKind.MISSING_MANDATORY_FIELD]


def test_foreign_iban_is_rejected(bill):
    result = validate(bill.with_account("DE89370400440532013000"))
    message = result.for_field("account")[0]
    assert message.kind == ErrorKind.INVALID_IBAN
    assert message.message_key == "account_iban_not_from_ch_or_li"


@pytest.mark.parametrize(
    "amount, valid",
    [
        (Decimal("0.00"), False),
        (Decimal("0.01"), True),
        (Decimal("999999999.99"), True),
        (Decimal("1000000000.00"), False),
        (Decimal("-5.00"), False),
        (Decimal("10"), True),
        (Decimal("10.5"), True),
    ],
)
def test_amount_boundaries(bill, amount, valid):
    assert validate(bill.with_amount(amount)).is_valid is valid


def test_amount_with_more_than_two_decimals_is_rejected(bill):
    result = validate(bill.with_amount(Decimal("10.005")))
    assert result.kinds("amount") == [ErrorKind.INVALID_VALUE]
    assert result.for_field("amount")[0].message_key == "amount_scale_invalid"


@pytest.mark.parametrize(
    "amount, kinds",
    [
        (Decimal("1E+30"), [ErrorKind.VALUE_OUT_OF_RANGE]),
        (Decimal("1000000000000000000000000000000"), [ErrorKind.VALUE_OUT_OF_RANGE]),
        (
            Decimal("1234567890123456789012345678901.125"),
            [ErrorKind.VALUE_OUT_OF_RANGE, ErrorKind.INVALID_VALUE],
        ),
        (Decimal("10.500"), [ErrorKind.INVALID_VALUE]),
    ],
)
def test_huge_or_overly_precise_amount_is_reported(bill, amount, kinds):
    assert validate(bill.with_amount(amount)).kinds("amount") == kinds


def test_missing_amount_is_valid(bill):
    assert validate(bill.with_amount(None)).is_valid


def test_currency(bill):
    assert validate(bill.with_currency("EUR")).is_valid
    assert validate(bill.with_currency("USD")).kinds("currency") == [ErrorKind.INVALID_VALUE]
    assert validate(bill.with_currency(None)).kinds("currency") == [ErrorKind.MISSING_MANDATORY_FIELD]


@pytest.mark.parametrize("account", [QR_IBAN, QR_IBAN_LOWEST_IID])
def test_qr_iban_requires_reference(bill, account):
    result = validate(bill.with_account(account).with_reference(None))
    assert result.kinds("reference") == [ErrorKind.MISSING_MANDATORY_FIELD]
    assert result.for_field("reference")[0].message_key == "mandatory_for_qr_iban"


@pytest.mark.parametrize("account", [IBAN, IBAN_IID_32000, LI_IBAN])
def test_regular_iban_accepts_missing_reference(bill, account):
    assert validate(bill.with_account(account).with_reference(None)).is_valid


def test_regular_iban_accepts_both_reference_types(bill):
    regular = bill.with_account(IBAN)
    assert validate(regular.with_reference(CREDITOR_REFERENCE)).is_valid
    assert validate(regular.with_reference(QR_REFERENCE)).is_valid
    assert validate(regular.with_creditor_reference("4711")).is_valid


def test_qr_iban_rejects_creditor_reference(bill):
    result = validate(bill.with_reference(CREDITOR_REFERENCE))
    assert result.kinds("reference") == [ErrorKind.INVALID_REFERENCE_TYPE]


@pytest.mark.parametrize(
    "account, reference, kind",
    [
        (QR_IBAN, "210000000003139471430009018", ErrorKind.INVALID_REFERENCE),
        (IBAN, "210000000003139471430009018", ErrorKind.INVALID_REFERENCE),
        (IBAN, "RF19539007547034", ErrorKind.INVALID_REFERENCE),
        (IBAN, "12345", ErrorKind.INVALID_REFERENCE_TYPE),
        (QR_IBAN, "21000000000313947143000901", ErrorKind.INVALID_REFERENCE_TYPE),
        (IBAN, "INVOICE-4711", ErrorKind.INVALID_REFERENCE_TYPE),
    ],
)
def test_invalid_references(bill, account, reference, kind):
    result = validate(bill.with_account(account).with_reference(reference))
    assert result.kinds("reference") == [kind]


def test_empty_creditor_reports_mandatory_fields(bill):
    result = validate(bill.with_creditor(Address()))
    assert [m.field for m in result.messages] == [
        "creditor.name",
        "creditor.postal_code",
        "creditor.town",
        "creditor.country_code",
    ]
    assert {m.kind for m in result.messages} == {ErrorKind.MISSING_MANDATORY_FIELD}


def test_ambiguous_address_variant(bill):
    mixed = Address(
        name="Robert Schneider AG",
        street="Rue du Lac",
        house_no="1268",
        address_line_1="Rue du Lac 1268",
        postal_code="2501",
        town="Biel",
        country_code="CH",
    )
    result = validate(bill.with_creditor(mixed))
    assert result.kinds("creditor") == [ErrorKind.AMBIGUOUS_ADDRESS_VARIANT]
    assert validate(bill.with_debtor(mixed)).kinds("debtor") == [ErrorKind.AMBIGUOUS_ADDRESS_VARIANT]


def test_combined_address(bill):
    combined = Address.combined(
        name="Pia Rutschmann", address_line_1="Marktgasse 28", address_line_2="9400 Rorschach", country_code="CH"
    )
    assert validate(bill.with_debtor(combined)).is_valid
    without_line_2 = Address(name="Pia Rutschmann", address_line_1="Marktgasse 28", country_code="CH")
    result = validate(bill.with_debtor(without_line_2))
    assert [m.field for m in result.messages] == ["debtor.address_line_2"]


def test_structured_address_without_street_is_valid(bill):
    address = Address.structured(name="Pia Rutschmann", postal_code="9400", town="Rorschach", country_code="CH")
    assert validate(bill.with_debtor(address)).is_valid


@pytest.mark.parametrize("country_code", ["C", "CHE", "C1", "CÄ", "1H"])
def test_invalid_country_code(bill, creditor, country_code):
    address = Address(**{**creditor.model_dump(), "country_code": country_code})
    result = validate(bill.with_creditor(address))
    assert result.kinds("creditor.country_code") == [ErrorKind.INVALID_VALUE]


def test_address_field_too_long(bill, creditor):
    address = Address(**{**creditor.model_dump(), "town": "B" * 36, "name": "N" * 70})
    result = validate(bill.with_creditor(address))
    assert [m.field for m in result.messages] == ["creditor.town"]
    assert result.messages[0].kind == ErrorKind.FIELD_TOO_LONG


@pytest.mark.parametrize("name", ["Müller € GmbH", "Zeile 1\nZeile 2", "Tab\tTab"])
def test_invalid_characters(bill, creditor, name):
    address = Address(**{**creditor.model_dump(), "name": name})
    result = validate(bill.with_creditor(address))
    assert result.kinds("creditor.name") == [ErrorKind.INVALID_CHARACTERS]


def test_valid_special_characters(bill, creditor):
    address = Address(**{**creditor.model_dump(), "name": "Bäckerei Françoise & Söhne £ ´"})
    assert validate(bill.with_creditor(address)).is_valid


def test_additional_information_lengths(bill):
    assert validate(bill.with_unstructured_message("M" * 140)).is_valid
    too_long = validate(bill.with_unstructured_message("M" * 141))
    assert too_long.kinds("unstructured_message") == [ErrorKind.FIELD_TOO_LONG]
    assert too_long.kinds("additional_information") == [ErrorKind.FIELD_TOO_LONG]

    combined = validate(bill.with_unstructured_message("M" * 100).with_bill_information("//" + "B" * 39))
    assert [m.field for m in combined.messages] == ["additional_information"]
    assert combined.messages[0].message_key == "additional_info_too_long"
    assert validate(bill.with_unstructured_message("M" * 100).with_bill_information("//" + "B" * 38)).is_valid


@pytest.mark.parametrize("count, valid", [(0, True), (1, True), (2, True), (3, False)])
def test_alternative_scheme_count(bill, count, valid):
    schemes = [AlternativeScheme(name=f"S{i}", parameter=f"S{i}/param") for i in range(count)]
    result = validate(bill.with_alternative_schemes(schemes))
    assert result.is_valid is valid
    if not valid:
        assert result.kinds("alternative_schemes") == [ErrorKind.TOO_MANY_ELEMENTS]


def test_alternative_scheme_fields(bill):
    schemes = [
        AlternativeScheme(name="eBill", parameter=None),
        AlternativeScheme(name=" ", parameter="P" * 101),
    ]
    result = validate(bill.with_alternative_schemes(schemes))
    assert [(m.field, m.kind) for m in result.messages] == [
        ("alternative_schemes[0].parameter", ErrorKind.MISSING_MANDATORY_FIELD),
        ("alternative_schemes[1].name", ErrorKind.MISSING_MANDATORY_FIELD),
        ("alternative_schemes[1].parameter", ErrorKind.FIELD_TOO_LONG),
    ]


def test_bill_format_values_must_be_known(bill):
    assert validate(bill.with_format(BillFormat(language="FR", graphics_format="PDF"))).is_valid
    result = validate(bill.with_format(BillFormat(language="ES", output_size="A5")))
    assert [(m.field, m.kind) for m in result.messages] == [
        ("format.language", ErrorKind.INVALID_VALUE),
        ("format.output_size", ErrorKind.INVALID_VALUE),
    ]


def test_alternative_scheme_name_must_match_parameter(bill):
    renamed = AlternativeScheme(name="Ultraviolet", parameter="UV;UltraPay005;12345")
    result = validate(bill.with_alternative_schemes([renamed]))
    assert result.kinds("alternative_schemes[0].name") == [ErrorKind.INVALID_VALUE]
    assert result.messages[0].message_key == "alt_scheme_name_mismatch"

    assert validate(bill.with_alternative_schemes([AlternativeScheme.from_parameter("UV;UltraPay005;12345")])).is_valid

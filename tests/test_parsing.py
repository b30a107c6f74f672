import pandas as pd
import pytest

from bond_yield_engine.bonds import Bond
from bond_yield_engine.errors import InvalidInputError, MissingDataError
from bond_yield_engine.parsing import convert_coupon_frequency, normalize_number, parse_provider_payload


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1.234,56", 1234.56),
        ("1,234.56", 1234.56),
        ("57,80", 57.8),
        ("92.81", 92.81),
        (" 2,15 ", 2.15),
        ("1,234", 1.234),
        ("1.234.567,8", 1234567.8),
        (5, 5.0),
        (12.5, 12.5),
    ],
)
def test_normalize_number(raw, expected):
    assert normalize_number(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", ["abc", "", None, True])
def test_normalize_number_rejects_garbage(raw):
    with pytest.raises(InvalidInputError):
        normalize_number(raw)


def test_convert_coupon_frequency():
    assert convert_coupon_frequency("Semestrale") == 2
    assert convert_coupon_frequency("  TRIMESTRALE ") == 4
    assert convert_coupon_frequency("Zero  Coupon") == 0
    assert convert_coupon_frequency("annuale") == 1
    with pytest.raises(InvalidInputError):
        convert_coupon_frequency("Ogni tanto")


@pytest.fixture
def payload():
    return {
        "success": True,
        "data": {
            "title": "Btp-1mz72 2,15%",
            "price": {"last": "57,80", "perc": "-0,25%"},
            "info": {
                "issuingDate": "2021-03-01",
                "maturityDate": "1972-03-01",
                "couponFrequency": "Semestrale",
                "periodicCouponRate": "1,075",
            },
            "webpage": "https://www.borsaitaliana.it/",
        },
    }


def test_parse_provider_payload(payload):
    meta = parse_provider_payload(payload)
    assert meta.title == "Btp-1mz72 2,15%"
    assert meta.last_price == pytest.approx(57.8)
    assert meta.change_perc == pytest.approx(-0.25)
    assert meta.coupon_frequency == 2
    assert meta.coupon_rate_perc == pytest.approx(2.15)
    assert meta.issuing_date == pd.Timestamp("2021-03-01")
    assert meta.maturity_date == pd.Timestamp("2072-03-01"), "Century slip must be corrected"


def test_parse_provider_payload_day_first_dates(payload):
    payload["data"]["info"]["issuingDate"] = "01/03/21"
    payload["data"]["info"]["maturityDate"] = "01/03/72"
    meta = parse_provider_payload(payload)
    assert meta.issuing_date == pd.Timestamp("2021-03-01")
    assert meta.maturity_date == pd.Timestamp("2072-03-01")


def test_parse_provider_payload_failures(payload):
    with pytest.raises(MissingDataError):
        parse_provider_payload({"success": False})

    del payload["data"]["info"]["couponFrequency"]
    with pytest.raises(MissingDataError):
        parse_provider_payload(payload)


def test_metadata_to_bond(payload):
    meta = parse_provider_payload(payload)
    bond = meta.to_bond("IT0005441883", pd.Timestamp("2025-03-05"), capital_gain_tax_perc=12.5)
    assert isinstance(bond, Bond)
    assert bond.settlement_price == pytest.approx(57.8)
    assert bond.yearly_frequency == 2
    assert bond.issuing_date == pd.Timestamp("2021-03-01")
    assert bond.coupon_amount == pytest.approx(1.075)

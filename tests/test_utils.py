import datetime as dt

import pandas as pd
import pytest

from bond_yield_engine.errors import InvalidInputError
from bond_yield_engine.utils import days_between, normalize_date, step_months, yearfrac


@pytest.mark.parametrize(
    "start, months, expected",
    [
        ("2028-07-15", -6, "2028-01-15"),
        ("2025-01-15", -1, "2024-12-15"),
        ("2024-11-30", 3, "2025-03-02"),
        ("2025-01-31", 1, "2025-03-03"),
        ("2024-01-31", 1, "2024-03-02"),
        ("2025-03-31", -6, "2024-10-01"),
        ("2025-08-31", -6, "2025-03-03"),
        ("2024-02-29", 12, "2025-03-01"),
        ("2024-02-29", -48, "2020-02-29"),
    ],
)
def test_step_months_overflow_rule(start, months, expected):
    assert step_months(pd.Timestamp(start), months) == pd.Timestamp(expected)


def test_step_months_is_pure():
    d = pd.Timestamp("2025-03-31")
    _ = step_months(d, -6)
    assert d == pd.Timestamp("2025-03-31"), "Input date must not be modified"


def test_days_between_absolute_and_time_of_day_ignored():
    a = pd.Timestamp("2025-01-15 18:30")
    b = pd.Timestamp("2025-03-07 01:00")
    assert days_between(a, b) == 51
    assert days_between(b, a) == 51


def test_normalize_date_accepts_common_inputs():
    expected = pd.Timestamp("2025-03-05")
    assert normalize_date("2025-03-05") == expected
    assert normalize_date(dt.date(2025, 3, 5)) == expected
    assert normalize_date(dt.datetime(2025, 3, 5, 14, 0)) == expected
    assert normalize_date(pd.Timestamp("2025-03-05 09:00", tz="Europe/Rome")) == expected


@pytest.mark.parametrize("bad", [None, "not a date", float("nan")])
def test_normalize_date_rejects_garbage(bad):
    with pytest.raises(InvalidInputError):
        normalize_date(bad)


def test_yearfrac_act365():
    assert yearfrac("2021-01-01", "2022-01-01") == pytest.approx(1.0)
    assert yearfrac("2020-01-01", "2021-01-01") == pytest.approx(366 / 365)
    with pytest.raises(ValueError):
        yearfrac("2022-01-01", "2021-01-01")

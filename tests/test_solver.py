import numpy as np
import pandas as pd
import pytest

from bond_yield_engine.bonds import Cashflow
from bond_yield_engine.errors import DegenerateInputError, NoConvergenceError
from bond_yield_engine.solver import find_bracket, npv, solve_annual_yield


def _stream(*pairs):
    return tuple(Cashflow(pd.Timestamp(d), float(a)) for d, a in pairs)


@pytest.fixture(scope="module")
def one_year_5pct():
    return _stream(("2021-01-01", -100.0), ("2022-01-01", 105.0))


@pytest.fixture(scope="module")
def coupon_stream():
    return _stream(
        ("2025-03-07", -92.88),
        ("2025-07-15", 0.25),
        ("2026-01-15", 0.25),
        ("2026-07-15", 0.25),
        ("2027-01-15", 0.25),
        ("2027-07-15", 0.25),
        ("2028-01-15", 0.25),
        ("2028-07-15", 100.25),
    )


def test_single_period_rate(one_year_5pct):
    r = solve_annual_yield(one_year_5pct)
    assert r == pytest.approx(0.05, abs=1e-8)


def test_leap_year_uses_365_day_basis():
    stream = _stream(("2020-01-01", -100.0), ("2021-01-01", 105.0))
    r = solve_annual_yield(stream)
    assert r == pytest.approx(1.05 ** (365 / 366) - 1, abs=1e-8)


def test_root_zeroes_npv(coupon_stream):
    r = solve_annual_yield(coupon_stream)
    assert np.isfinite(r)
    assert abs(npv(coupon_stream, r)) < 1e-7


def test_deterministic(coupon_stream):
    assert solve_annual_yield(coupon_stream) == solve_annual_yield(coupon_stream)


def test_bisection_fallback_finds_same_root(coupon_stream):
    newton = solve_annual_yield(coupon_stream)
    # guess outside the domain forces the bracketed bisection path
    fallback = solve_annual_yield(coupon_stream, guess=-1.5)
    assert fallback == pytest.approx(newton, abs=1e-9)


def test_negative_yield():
    stream = _stream(("2021-01-01", -100.0), ("2022-01-01", 98.0))
    assert solve_annual_yield(stream) == pytest.approx(-0.02, abs=1e-8)


def test_find_bracket_contains_root():
    amounts = np.array([-100.0, 107.3])
    times = np.array([0.0, 1.0])
    a, b = find_bracket(amounts, times)
    assert a <= 0.073 <= b
    assert b - a < 0.02


def test_same_signed_stream_is_degenerate():
    with pytest.raises(DegenerateInputError):
        solve_annual_yield(_stream(("2021-01-01", 100.0), ("2022-01-01", 105.0)))
    with pytest.raises(DegenerateInputError):
        solve_annual_yield(())


def test_root_outside_bracket_raises():
    # the only root is r = -0.995
    stream = _stream(("2021-01-01", -100.0), ("2022-01-01", 0.5))
    with pytest.raises(NoConvergenceError):
        solve_annual_yield(stream)


def test_npv_of_empty_stream_is_degenerate():
    with pytest.raises(DegenerateInputError):
        npv((), 0.05)


def test_npv_uses_act365_year_fractions(one_year_5pct):
    assert npv(one_year_5pct, 0.05) == pytest.approx(0.0, abs=1e-12)
    assert npv(one_year_5pct, 0.0) == pytest.approx(5.0)

from __future__ import annotations

import logging

import numpy as np
from typing import Iterable, Optional, Tuple

from scipy.optimize import bisect

from .bonds import Cashflow
from .config import (
    BISECT_MAX_ITER,
    BISECT_XTOL,
    BRACKET,
    BRACKET_SCAN_POINTS,
    DERIVATIVE_FLOOR,
    INITIAL_GUESS,
    MAX_ITER,
    TOL,
)
from .errors import DegenerateInputError, NoConvergenceError
from .utils import yearfrac

logger = logging.getLogger(__name__)


def _flows_arrays(stream: Iterable[Cashflow]) -> Tuple[np.ndarray, np.ndarray]:
    flows = list(stream)
    if not flows:
        raise DegenerateInputError("Empty cashflow stream.")

    first = min(cf.date for cf in flows)
    amounts = np.array([cf.amount for cf in flows], dtype=float)
    times = np.array([yearfrac(first, cf.date) for cf in flows], dtype=float)
    return amounts, times


def _amounts_and_times(stream: Iterable[Cashflow]) -> Tuple[np.ndarray, np.ndarray]:
    amounts, times = _flows_arrays(stream)

    if not np.all(np.isfinite(amounts)):
        raise DegenerateInputError("Cashflow stream contains non-finite amounts.")
    if not (np.any(amounts < 0) and np.any(amounts > 0)):
        raise DegenerateInputError("Cashflow amounts never change sign; no yield exists.")
    return amounts, times


def _npv(amounts: np.ndarray, times: np.ndarray, rate: float) -> float:
    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        return float(np.sum(amounts * (1.0 + rate) ** (-times)))


def _npv_grid(amounts: np.ndarray, times: np.ndarray, rates: np.ndarray) -> np.ndarray:
    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        disc = (1.0 + rates[:, None]) ** (-times[None, :])
        return np.sum(amounts[None, :] * disc, axis=1)


def npv(stream: Iterable[Cashflow], rate: float) -> float:
    """Net present value at an annual effective rate, ACT/365 from the first date."""
    amounts, times = _flows_arrays(stream)
    return _npv(amounts, times, rate)


def _newton(amounts: np.ndarray, times: np.ndarray, guess: float) -> Optional[float]:
    """Newton-Raphson on NPV(r); None when it diverges or stalls."""
    r = float(guess)
    for i in range(MAX_ITER):
        base = 1.0 + r
        if base <= 0.0:
            logger.debug("Newton left the domain at iteration %d (r=%g)", i, r)
            return None

        with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
            disc = base ** (-times)
            f = float(np.sum(amounts * disc))
            fprime = float(np.sum(-times * amounts * disc / base))

        if not (np.isfinite(f) and np.isfinite(fprime)):
            logger.debug("Newton hit a non-finite NPV at iteration %d", i)
            return None
        if abs(f) < TOL:
            logger.debug("Newton converged in %d iterations: r=%.10f", i, r)
            return r
        if abs(fprime) < DERIVATIVE_FLOOR:
            logger.debug("Newton derivative vanished at iteration %d", i)
            return None

        r = r - f / fprime

    logger.debug("Newton exhausted %d iterations", MAX_ITER)
    return None


def find_bracket(
    amounts: np.ndarray,
    times: np.ndarray,
    lo: float = BRACKET[0],
    hi: float = BRACKET[1],
    n: int = BRACKET_SCAN_POINTS,
) -> Optional[Tuple[float, float]]:
    """First sub-interval of an even scan of [lo, hi] where NPV changes sign."""
    rates = np.linspace(lo, hi, n)
    values = _npv_grid(amounts, times, rates)

    for k in range(n - 1):
        a, b = values[k], values[k + 1]
        if not (np.isfinite(a) and np.isfinite(b)):
            continue
        if a == 0.0:
            return float(rates[k]), float(rates[k])
        if a * b < 0.0:
            return float(rates[k]), float(rates[k + 1])
    if np.isfinite(values[-1]) and values[-1] == 0.0:
        return float(rates[-1]), float(rates[-1])
    return None


def solve_annual_yield(stream: Iterable[Cashflow], guess: float = INITIAL_GUESS) -> float:
    """
    Annual effective rate r with sum(amount_i * (1 + r) ** -t_i) == 0,
    t_i = days since the first cashflow / 365.

    Newton-Raphson first; bisection over a scanned bracket when Newton fails.
    Multiply by 100 for a percentage.
    """
    amounts, times = _amounts_and_times(stream)

    r = _newton(amounts, times, guess)
    if r is not None:
        return r

    bracket = find_bracket(amounts, times)
    if bracket is None:
        raise NoConvergenceError(f"No sign change of NPV within {BRACKET}.")

    a, b = bracket
    if a == b:
        return a

    logger.debug("Falling back to bisection on [%g, %g]", a, b)
    try:
        r = bisect(lambda x: _npv(amounts, times, x), a, b, xtol=BISECT_XTOL, maxiter=BISECT_MAX_ITER)
    except (RuntimeError, ValueError) as exc:
        raise NoConvergenceError(f"Bisection failed on [{a}, {b}]: {exc}") from exc

    if not np.isfinite(r):
        raise NoConvergenceError("Bisection returned a non-finite rate.")
    return float(r)

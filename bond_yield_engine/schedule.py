from __future__ import annotations

import pandas as pd
from functools import lru_cache
from typing import Iterable, List, Optional, Tuple

from .bonds import Bond, Cashflow
from .config import DAYS_PER_YEAR
from .utils import days_between, normalize_date, period_months, step_months


# ---------- Coupon schedule ----------

def coupon_dates(
    start: pd.Timestamp,
    maturity: pd.Timestamp,
    freq: int,
    anchor_before_start: bool = False,
) -> List[pd.Timestamp]:
    """
    Coupon dates from maturity backward while >= start, ascending.

    Each date is one step from the previous one, so a month-end overflow
    (Mar 31 -> Oct 1) carries into every earlier coupon. With
    anchor_before_start one extra coupon dated before start is kept, giving
    accrual an anchor when no issuing date is known.
    """
    if freq <= 0:
        return []

    months = period_months(freq)
    start = normalize_date(start)
    d = normalize_date(maturity)

    dates: List[pd.Timestamp] = []
    added_before_start = False
    while d >= start or (anchor_before_start and not added_before_start):
        dates.append(d)
        if d < start:
            added_before_start = True
        d = step_months(d, -months)

    dates.sort()
    return dates


@lru_cache(maxsize=4096)
def cached_schedule(
    start: pd.Timestamp,
    maturity: pd.Timestamp,
    freq: int,
    amount: float,
    anchor_before_start: bool,
) -> Tuple[Cashflow, ...]:
    """Cache schedules by their full set of inputs; entries are immutable."""
    return tuple(
        Cashflow(d, amount, coupon=amount, pays_coupon=True)
        for d in coupon_dates(start, maturity, freq, anchor_before_start)
    )


def coupon_schedule(bond: Bond) -> Tuple[Cashflow, ...]:
    """Gross coupon payments of a bond, issue (or settlement) to maturity."""
    if bond.is_zero_coupon:
        return ()
    return cached_schedule(
        bond.schedule_start,
        bond.maturity_date,
        bond.yearly_frequency,
        bond.coupon_amount,
        bond.issuing_date is None,
    )


# ---------- Accrual ----------

def find_last_coupon(
    schedule: Iterable[Cashflow],
    reference_date: pd.Timestamp,
    maturity_date: pd.Timestamp,
    freq: int,
) -> pd.Timestamp:
    """
    Latest coupon date on or before reference_date. If there is none, one
    coupon period before the first scheduled coupon (or before maturity for an
    empty schedule).
    """
    reference_date = normalize_date(reference_date)
    dates = sorted(cf.date for cf in schedule)

    past = [d for d in dates if d <= reference_date]
    if past:
        return past[-1]

    anchor = dates[0] if dates else normalize_date(maturity_date)
    return step_months(anchor, -period_months(freq))


def find_next_coupon(flows: Iterable[Cashflow], reference_date: pd.Timestamp) -> Optional[pd.Timestamp]:
    """Earliest coupon-bearing entry strictly after reference_date."""
    reference_date = normalize_date(reference_date)
    upcoming = sorted(cf.date for cf in flows if cf.pays_coupon and cf.date > reference_date)
    return upcoming[0] if upcoming else None


def accrued_interest(reference_date: pd.Timestamp, coupon_date: pd.Timestamp, coupon_rate_perc: float) -> float:
    """
    Accrued interest per 100 nominal, simple ACT/365:
        coupon_rate_perc * days / 365
    """
    return coupon_rate_perc * days_between(coupon_date, reference_date) / DAYS_PER_YEAR


# ---------- Capital gains tax ----------

def net_coupon(amount: float, tax_perc: float) -> float:
    return amount - amount * tax_perc / 100.0


def capital_gain_tax(gain: float, tax_perc: float) -> float:
    """Tax on a realized gain; a loss gives a negative tax (credit)."""
    return gain * tax_perc / 100.0

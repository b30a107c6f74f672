from __future__ import annotations

import datetime as dt
from typing import Union

import pandas as pd

from .config import DAYS_PER_YEAR
from .errors import InvalidInputError

DateLike = Union[pd.Timestamp, dt.date, dt.datetime, str]


def normalize_date(value: DateLike) -> pd.Timestamp:
    """
    Midnight, timezone-naive Timestamp for any date-like input.

    Accepts Timestamp, date, datetime, numpy datetime64 or an ISO string.
    """
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"Not a valid date: {value!r}") from exc

    if pd.isna(ts):
        raise InvalidInputError(f"Not a valid date: {value!r}")

    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts.normalize()


def step_months(date: DateLike, months: int) -> pd.Timestamp:
    """
    Move a date by a whole number of months (negative = backward).

    The day-of-month is kept when the target month has it. Otherwise the excess
    days overflow into the following month, as ordinary Gregorian date arithmetic
    does: Jan 31 + 1 month -> Mar 3 (Mar 2 in a leap year), Mar 31 - 6 months -> Oct 1.

    pd.DateOffset alone would clamp to month end instead, so the step is taken on
    the first of the month and the day offset added back afterwards.
    """
    d = normalize_date(date)
    first = d.replace(day=1) + pd.DateOffset(months=int(months))
    return pd.Timestamp(first) + pd.Timedelta(days=d.day - 1)


def days_between(d1: DateLike, d2: DateLike) -> int:
    """Absolute whole-day difference, time of day ignored."""
    return abs((normalize_date(d2) - normalize_date(d1)).days)


def yearfrac(start: DateLike, end: DateLike) -> float:
    """ACT/365 year fraction; the engine has no other day count."""
    start = normalize_date(start)
    end = normalize_date(end)
    if end < start:
        raise ValueError(f"end < start: {start=} {end=}")
    return (end - start).days / float(DAYS_PER_YEAR)


def period_months(freq: int) -> int:
    """Months between coupons; a zero-coupon bond is treated as yearly."""
    if freq <= 0:
        return 12
    return 12 // freq

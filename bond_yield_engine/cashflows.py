from __future__ import annotations

import logging

import numpy as np
import pandas as pd
from typing import Dict, Iterable, List, Optional, Tuple

from .bonds import Bond, Cashflow
from .errors import InvalidInputError, MissingDataError, ScheduleError
from .schedule import (
    accrued_interest,
    capital_gain_tax,
    coupon_schedule,
    find_last_coupon,
    find_next_coupon,
    net_coupon,
)
from .utils import normalize_date, yearfrac

logger = logging.getLogger(__name__)

Stream = Tuple[Cashflow, ...]


def merge_same_date(flows: Iterable[Cashflow]) -> Stream:
    """Sort by date and sum entries sharing a date."""
    merged: Dict[pd.Timestamp, Cashflow] = {}
    for cf in sorted(flows, key=lambda c: c.date):
        prev = merged.get(cf.date)
        if prev is None:
            merged[cf.date] = cf
        else:
            merged[cf.date] = Cashflow(
                cf.date,
                prev.amount + cf.amount,
                prev.coupon + cf.coupon,
                prev.pays_coupon or cf.pays_coupon,
            )
    return tuple(merged.values())


def validate_stream(stream: Stream) -> None:
    if len(stream) < 2:
        raise ScheduleError(f"Cashflow stream needs at least 2 entries, got {len(stream)}.")

    amounts = np.array([cf.amount for cf in stream], dtype=float)
    if not np.all(np.isfinite(amounts)):
        raise ScheduleError("Cashflow stream contains non-finite amounts.")
    if not (np.any(amounts < 0) and np.any(amounts > 0)):
        raise ScheduleError("Cashflow stream has no sign change.")


def assemble_full_life(bond: Bond, net: bool = False) -> Stream:
    """
    Investor cashflows for holding the bond from settlement to maturity.

    - settlement: -(settlement price + accrued since the last coupon)
    - every coupon strictly after settlement (net of tax when `net`)
    - maturity: redemption + accrued - tax on (redemption + accrued - settlement price)

    A coupon paid on the maturity date is merged into the redemption entry.
    """
    tax_perc = bond.capital_gain_tax_perc if net else 0.0
    schedule = coupon_schedule(bond)

    settle = bond.settlement_date
    redemption_date = bond.maturity_date

    last_before_settle = find_last_coupon(schedule, settle, bond.maturity_date, bond.yearly_frequency)
    accrued_settle = accrued_interest(settle, last_before_settle, bond.coupon_rate_perc)

    last_before_redemption = find_last_coupon(schedule, redemption_date, bond.maturity_date, bond.yearly_frequency)
    accrued_redemption = accrued_interest(redemption_date, last_before_redemption, bond.coupon_rate_perc)

    gain = bond.redemption_price + accrued_redemption - bond.settlement_price
    exit_tax = capital_gain_tax(gain, tax_perc)

    flows: List[Cashflow] = [Cashflow(settle, -(bond.settlement_price + accrued_settle))]
    for cf in schedule:
        if settle < cf.date <= redemption_date:
            amt = net_coupon(cf.amount, tax_perc)
            flows.append(Cashflow(cf.date, amt, coupon=amt, pays_coupon=True))
    flows.append(Cashflow(redemption_date, bond.redemption_price + accrued_redemption - exit_tax))

    stream = merge_same_date(flows)
    validate_stream(stream)
    logger.debug("%s: full-life stream with %d entries (net=%s)", bond.isin or "bond", len(stream), net)
    return stream


def assemble_early_exit(
    full_stream: Stream,
    exit_date: pd.Timestamp,
    exit_price: Optional[float],
    settlement_price: float,
    coupon_rate_perc: float,
    net: bool = False,
    tax_perc: float = 0.0,
) -> Stream:
    """
    Truncate a full-life stream at exit_date and append the sale proceeds.

    Accrued interest at exit runs forward: days from exit_date to the next
    coupon still to be paid (0 if none is left), not back to the last one paid.
    The taxable gain is exit_price - settlement_price.
    """
    if exit_price is None:
        raise MissingDataError("Exit yield needs an exit price.")
    if exit_date is None:
        raise MissingDataError("Exit yield needs an exit date.")

    flows = sorted(full_stream, key=lambda c: c.date)
    if len(flows) < 2:
        raise ScheduleError("Full-life stream must contain settlement and redemption.")

    exit_date = normalize_date(exit_date)
    if exit_date > flows[-1].date:
        raise InvalidInputError(f"Exit date {exit_date.date()} is after maturity {flows[-1].date.date()}.")

    kept: List[Cashflow] = []
    for i, cf in enumerate(flows):
        if cf.date > exit_date:
            continue
        if i == len(flows) - 1:
            # redemption is replaced by the sale; only its coupon part was paid
            if cf.pays_coupon:
                kept.append(Cashflow(cf.date, cf.coupon, coupon=cf.coupon, pays_coupon=True))
            continue
        kept.append(cf)

    next_coupon = find_next_coupon(flows, exit_date)
    accrued_exit = 0.0
    if next_coupon is not None:
        accrued_exit = accrued_interest(next_coupon, exit_date, coupon_rate_perc)

    exit_tax = capital_gain_tax(exit_price - settlement_price, tax_perc if net else 0.0)
    kept.append(Cashflow(exit_date, exit_price + accrued_exit - exit_tax))

    stream = merge_same_date(kept)
    validate_stream(stream)
    logger.debug("Early-exit stream at %s with %d entries (net=%s)", exit_date.date(), len(stream), net)
    return stream


def cashflows_frame(stream: Iterable[Cashflow]) -> pd.DataFrame:
    """Stream as a table, with ACT/365 time from the first entry."""
    flows = list(stream)
    out = pd.DataFrame(
        {
            "date": [cf.date for cf in flows],
            "amount": [cf.amount for cf in flows],
            "coupon": [cf.coupon for cf in flows],
        }
    )
    first = min((cf.date for cf in flows), default=None)
    out["t_years"] = pd.Series([yearfrac(first, cf.date) for cf in flows], dtype=float)
    return out

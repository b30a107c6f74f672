from __future__ import annotations

import math
import pandas as pd
from typing import Dict, Optional

from .bonds import Bond
from .cashflows import Stream, assemble_early_exit, assemble_full_life
from .errors import InvalidInputError, MissingDataError
from .solver import solve_annual_yield
from .utils import normalize_date


def compute_gross_yield(bond: Bond) -> float:
    """Annual yield to maturity in percent, before tax."""
    return 100.0 * solve_annual_yield(assemble_full_life(bond, net=False))


def compute_net_yield(bond: Bond) -> float:
    """Annual yield to maturity in percent, net of capital gains tax on coupons and on the final gain."""
    return 100.0 * solve_annual_yield(assemble_full_life(bond, net=True))


def exit_cashflows(bond: Bond, exit_date, exit_price: Optional[float], net: bool = False) -> Stream:
    if exit_date is None:
        raise MissingDataError("Exit yield needs an exit date.")
    if exit_price is None or (isinstance(exit_price, float) and math.isnan(exit_price)):
        raise MissingDataError("Exit yield needs an exit price.")

    exit_price = float(exit_price)
    if not math.isfinite(exit_price) or exit_price < 0:
        raise InvalidInputError(f"Invalid exit price: {exit_price!r}")

    full = assemble_full_life(bond, net=net)
    return assemble_early_exit(
        full,
        exit_date,
        exit_price,
        bond.settlement_price,
        bond.coupon_rate_perc,
        net=net,
        tax_perc=bond.capital_gain_tax_perc,
    )


def compute_exit_yield(bond: Bond, exit_date, exit_price: Optional[float], net: bool = False) -> float:
    """Annual yield in percent if the bond is sold on exit_date at exit_price."""
    return 100.0 * solve_annual_yield(exit_cashflows(bond, exit_date, exit_price, net))


class BondYieldCalculator:
    """Yields of one bond; every call recomputes from the bond's current fields."""

    def __init__(self, bond: Bond):
        self.bond = bond

    def validate(self) -> None:
        bond = self.bond
        if bond.settlement_date >= bond.maturity_date:
            raise InvalidInputError(f"{bond.isin or 'bond'}: matured at settlement.")

    def gross_yield(self) -> float:
        self.validate()
        return compute_gross_yield(self.bond)

    def net_yield(self) -> float:
        self.validate()
        return compute_net_yield(self.bond)

    def exit_yield(self, exit_date, exit_price: Optional[float], net: bool = False) -> float:
        self.validate()
        return compute_exit_yield(self.bond, exit_date, exit_price, net)

    def summary(self, exit_date=None, exit_price: Optional[float] = None) -> Dict[str, float]:
        """Gross/net yields, plus the sell-on-exit_date pair when a price is given."""
        out = {
            "annual_yield_gross": self.gross_yield(),
            "annual_yield_net": self.net_yield(),
        }
        if exit_price is not None:
            exit_date = normalize_date(exit_date if exit_date is not None else pd.Timestamp.today())
            out["annual_yield_gross_today"] = self.exit_yield(exit_date, exit_price, net=False)
            out["annual_yield_net_today"] = self.exit_yield(exit_date, exit_price, net=True)
        return out

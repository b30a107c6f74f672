from __future__ import annotations

import logging

import numpy as np
import pandas as pd
from typing import List, Optional

from .bonds import Bond
from .errors import BondYieldError
from .parsing import normalize_number
from .utils import normalize_date
from .yields import BondYieldCalculator

logger = logging.getLogger(__name__)

YIELD_COLUMNS = [
    "annual_yield_gross",
    "annual_yield_net",
    "annual_yield_gross_today",
    "annual_yield_net_today",
]


def yield_table(records: pd.DataFrame, exit_date: Optional[pd.Timestamp] = None) -> pd.DataFrame:
    """
    Recompute the yields of every row of a holdings table.

    Rows carry Bond fields (see Bond.from_record) and optionally `today_price`;
    the *_today columns are the yields of selling at that price on exit_date
    (default: today). A row whose yield cannot be computed keeps NaN in the
    affected columns and names the error in `flags`.
    """
    if exit_date is None:
        exit_date = pd.Timestamp.today()
    exit_date = normalize_date(exit_date)

    out = records.copy()
    for col in YIELD_COLUMNS:
        out[col] = np.nan
    flag_list: List[str] = []

    has_today = "today_price" in out.columns
    for idx, row in records.iterrows():
        flags: List[str] = []
        try:
            bond = Bond.from_record(row.to_dict())
        except BondYieldError as exc:
            logger.warning("Row %s: invalid bond (%s)", idx, exc)
            flag_list.append(type(exc).__name__)
            continue

        calc = BondYieldCalculator(bond)
        try:
            out.at[idx, "annual_yield_gross"] = calc.gross_yield()
            out.at[idx, "annual_yield_net"] = calc.net_yield()
        except BondYieldError as exc:
            logger.warning("%s: yield not computed (%s)", bond.isin or idx, exc)
            flags.append(type(exc).__name__)

        price = row.get("today_price") if has_today else None
        if price is not None and not pd.isna(price):
            try:
                price = normalize_number(price)
                out.at[idx, "annual_yield_gross_today"] = calc.exit_yield(exit_date, price, net=False)
                out.at[idx, "annual_yield_net_today"] = calc.exit_yield(exit_date, price, net=True)
            except BondYieldError as exc:
                logger.warning("%s: exit yield not computed (%s)", bond.isin or idx, exc)
                flags.append("EXIT_" + type(exc).__name__)

        flag_list.append("|".join(flags))

    out["flags"] = flag_list
    return out

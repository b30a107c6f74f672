from __future__ import annotations

import math
import pandas as pd
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional

from .config import SUPPORTED_FREQUENCIES
from .errors import InvalidInputError
from .parsing import normalize_number
from .utils import normalize_date


@dataclass(frozen=True)
class Cashflow:
    """
    One dated payment. `coupon` is the part of `amount` that is a coupon, so a
    merged maturity entry (last coupon + redemption) can still be taken apart.
    `pays_coupon` marks a coupon date even when tax leaves nothing of it.
    """
    date: pd.Timestamp
    amount: float
    coupon: float = 0.0
    pays_coupon: bool = False


@dataclass(frozen=True)
class Bond:
    """
    Fixed-coupon bond as held by one investor.

    Rates and prices are percentages / per-100 quotes, e.g. coupon_rate_perc=2.15,
    settlement_price=57.8, redemption_price=100. A missing or negative
    yearly_frequency means zero coupon. When issuing_date is None the coupon
    schedule starts at the settlement date.
    """
    settlement_date: pd.Timestamp
    maturity_date: pd.Timestamp
    coupon_rate_perc: float
    settlement_price: float
    redemption_price: float = 100.0
    yearly_frequency: Optional[int] = 0
    capital_gain_tax_perc: Optional[float] = 0.0
    issuing_date: Optional[pd.Timestamp] = None
    isin: str = ""

    def __post_init__(self) -> None:
        settle = normalize_date(self.settlement_date)
        maturity = normalize_date(self.maturity_date)
        issuing = None if _is_blank(self.issuing_date) else normalize_date(self.issuing_date)

        coupon = _finite(self.coupon_rate_perc, "coupon_rate_perc")
        settle_px = _finite(self.settlement_price, "settlement_price")
        redemption_px = _finite(self.redemption_price, "redemption_price")
        tax = 0.0 if self.capital_gain_tax_perc is None else _finite(self.capital_gain_tax_perc, "capital_gain_tax_perc")
        freq = _frequency(self.yearly_frequency)

        if settle_px < 0 or redemption_px < 0:
            raise InvalidInputError(f"{self.isin or 'bond'}: prices must not be negative.")
        if not (0.0 <= tax <= 100.0):
            raise InvalidInputError(f"{self.isin or 'bond'}: capital gain tax must be within [0, 100].")
        if issuing is not None and maturity < issuing:
            raise InvalidInputError(f"{self.isin or 'bond'}: matures before issuing date.")
        if settle > maturity:
            raise InvalidInputError(f"{self.isin or 'bond'}: settles after maturity.")

        object.__setattr__(self, "settlement_date", settle)
        object.__setattr__(self, "maturity_date", maturity)
        object.__setattr__(self, "issuing_date", issuing)
        object.__setattr__(self, "coupon_rate_perc", coupon)
        object.__setattr__(self, "settlement_price", settle_px)
        object.__setattr__(self, "redemption_price", redemption_px)
        object.__setattr__(self, "capital_gain_tax_perc", tax)
        object.__setattr__(self, "yearly_frequency", freq)
        object.__setattr__(self, "isin", self.isin or "")

    @property
    def schedule_start(self) -> pd.Timestamp:
        return self.issuing_date if self.issuing_date is not None else self.settlement_date

    @property
    def is_zero_coupon(self) -> bool:
        return self.yearly_frequency == 0

    @property
    def coupon_amount(self) -> float:
        if self.is_zero_coupon:
            return 0.0
        return self.redemption_price * (self.coupon_rate_perc / 100.0) / self.yearly_frequency

    def to_record(self) -> Dict[str, Any]:
        """Flat record with ISO dates, suitable for JSON/CSV storage."""
        rec: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, pd.Timestamp):
                value = value.strftime("%Y-%m-%d")
            rec[f.name] = value
        return rec

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Bond":
        """
        Inverse of to_record. Numeric fields may be locale strings ("57,80");
        unknown keys are ignored so UI rows can be passed directly.
        """
        names = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in record.items():
            if key not in names or _is_blank(value):
                continue
            if key in ("coupon_rate_perc", "settlement_price", "redemption_price",
                       "capital_gain_tax_perc", "yearly_frequency"):
                value = normalize_number(value)
            elif key.endswith("_date"):
                value = normalize_date(value)
            elif key == "isin":
                value = str(value).strip()
            kwargs[key] = value

        missing = [n for n in ("settlement_date", "maturity_date", "coupon_rate_perc", "settlement_price") if n not in kwargs]
        if missing:
            raise InvalidInputError(f"Record is missing required fields: {missing}")
        return cls(**kwargs)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _finite(value: Any, name: str) -> float:
    try:
        x = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"{name} must be a number, got {value!r}") from exc
    if not math.isfinite(x):
        raise InvalidInputError(f"{name} must be finite, got {value!r}")
    return x


def _frequency(value: Any) -> int:
    if value is None:
        return 0
    x = _finite(value, "yearly_frequency")
    if x <= 0:
        return 0
    if x != int(x) or int(x) not in SUPPORTED_FREQUENCIES:
        raise InvalidInputError(f"Supported frequencies: {SUPPORTED_FREQUENCIES[1:]}, got {value!r}")
    return int(x)

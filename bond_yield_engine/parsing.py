"""
Normalization of the loosely typed values the engine receives from outside:
locale number strings typed into a table, and the bond metadata payload of the
Borsa Italiana lookup service. No network access happens here.
"""
from __future__ import annotations

import numbers
import pandas as pd
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from .errors import InvalidInputError, MissingDataError
from .utils import normalize_date

COUPON_FREQUENCIES = {
    "annuale": 1,
    "semestrale": 2,
    "trimestrale": 4,
    "mensile": 12,
    "bimestrale": 6,
    "quadrimestrale": 3,
    "giornaliero": 365,
    "zero coupon": 0,
}


def normalize_number(value: Union[str, float, int]) -> float:
    """
    Parse "1.234,56" (European) and "1,234.56" (English) alike.

    A comma without any dot, or a comma after the last dot, is a decimal comma
    and the dots are thousands separators; otherwise commas are separators.
    """
    if isinstance(value, bool):
        raise InvalidInputError(f"Not a number: {value!r}")
    if isinstance(value, numbers.Number):
        return float(value)
    if not isinstance(value, str):
        raise InvalidInputError(f"Not a number: {value!r}")

    s = value.strip()
    if "," in s and ("." not in s or s.rfind(".") < s.rfind(",")):
        s = s.replace(".", "").replace(",", ".", 1)
    else:
        s = s.replace(",", "")

    try:
        return float(s)
    except ValueError as exc:
        raise InvalidInputError(f"Not a number: {value!r}") from exc


def convert_coupon_frequency(label: str) -> int:
    """Provider frequency label ("Semestrale", "Zero Coupon", ...) -> payments per year."""
    key = " ".join(str(label).split()).lower()
    if key not in COUPON_FREQUENCIES:
        raise InvalidInputError(f"Unknown coupon frequency: {label!r}")
    return COUPON_FREQUENCIES[key]


@dataclass(frozen=True)
class BondMetadata:
    title: str
    last_price: float
    change_perc: float
    coupon_frequency: int
    issuing_date: pd.Timestamp
    maturity_date: pd.Timestamp
    periodic_coupon_rate: float
    webpage: str = ""

    @property
    def coupon_rate_perc(self) -> float:
        return self.periodic_coupon_rate * self.coupon_frequency

    def to_bond(
        self,
        isin: str,
        settlement_date,
        settlement_price: Optional[float] = None,
        redemption_price: float = 100.0,
        capital_gain_tax_perc: float = 0.0,
    ):
        """
        Bond bought on settlement_date. Without an explicit price the last traded
        price is used, which is what a purchase settled today would pay.
        """
        from .bonds import Bond  # bonds imports this module

        return Bond(
            isin=isin,
            settlement_date=settlement_date,
            issuing_date=self.issuing_date,
            maturity_date=self.maturity_date,
            coupon_rate_perc=self.coupon_rate_perc,
            settlement_price=self.last_price if settlement_price is None else settlement_price,
            redemption_price=redemption_price,
            yearly_frequency=self.coupon_frequency,
            capital_gain_tax_perc=capital_gain_tax_perc,
        )


def _provider_date(value: Any) -> pd.Timestamp:
    # the provider writes dd/mm/yy
    if isinstance(value, str) and "/" in value:
        try:
            return normalize_date(pd.to_datetime(value.strip(), dayfirst=True))
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(f"Not a valid date: {value!r}") from exc
    return normalize_date(value)


def parse_provider_payload(payload: Mapping[str, Any]) -> BondMetadata:
    """
    Normalize a raw lookup response:

        {"success": true,
         "data": {"title": ..., "price": {"last": "57,80", "perc": "-0,25%"},
                  "info": {"issuingDate": ..., "maturityDate": ...,
                           "couponFrequency": "Semestrale",
                           "periodicCouponRate": "1,075"},
                  "webpage": ...}}
    """
    if not payload.get("success"):
        raise MissingDataError(f"Lookup not successful: {payload.get('success')!r}")

    data = payload.get("data") or {}
    price = data.get("price") or {}
    info = data.get("info") or {}

    try:
        issuing = _provider_date(info["issuingDate"])
        maturity = _provider_date(info["maturityDate"])
        frequency = convert_coupon_frequency(info["couponFrequency"])
        periodic = normalize_number(info["periodicCouponRate"])
        last = normalize_number(price["last"])
    except KeyError as exc:
        raise MissingDataError(f"Lookup response lacks field {exc.args[0]!r}") from exc

    perc = price.get("perc")
    change = normalize_number(str(perc).replace("%", "").strip()) if perc is not None else 0.0

    # two-digit years can land a century early
    if maturity < issuing:
        maturity = maturity + pd.DateOffset(years=100)

    return BondMetadata(
        title=str(data.get("title", "")),
        last_price=last,
        change_perc=change,
        coupon_frequency=frequency,
        issuing_date=issuing,
        maturity_date=pd.Timestamp(maturity),
        periodic_coupon_rate=periodic,
        webpage=str(data.get("webpage", "")),
    )

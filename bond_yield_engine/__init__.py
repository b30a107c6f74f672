"""
Bond Yield Engine

Modules:
- bonds: Bond / Cashflow data model + flat-record round trip
- schedule: coupon schedule, accrual (ACT/365) and capital gains tax
- cashflows: investor cashflow streams (full life, early exit)
- solver: XIRR-style annual yield (Newton-Raphson with bisection fallback)
- yields: gross / net / exit yield entry points
- parsing: locale numbers + lookup-provider payload normalization
- table: per-row yield recompute for a holdings DataFrame
- utils: calendar helpers

Callers should import from the package root.
"""
from .bonds import Bond, Cashflow
from .cashflows import assemble_early_exit, assemble_full_life, cashflows_frame
from .errors import (
    BondYieldError,
    DegenerateInputError,
    InvalidInputError,
    MissingDataError,
    NoConvergenceError,
    ScheduleError,
)
from .parsing import BondMetadata, convert_coupon_frequency, normalize_number, parse_provider_payload
from .schedule import coupon_schedule
from .solver import npv, solve_annual_yield
from .table import yield_table
from .yields import BondYieldCalculator, compute_exit_yield, compute_gross_yield, compute_net_yield

__version__ = "0.1.0"

from __future__ import annotations


class BondYieldError(ValueError):
    """Base class for every failure raised by the yield engine."""


class InvalidInputError(BondYieldError):
    """Non-finite or out-of-domain bond field (negative price, bad date, ...)."""


class DegenerateInputError(BondYieldError):
    """Cashflow stream without a sign change: no rate can zero its NPV."""


class ScheduleError(DegenerateInputError):
    """Assembled investor stream is too short or has no sign change."""


class NoConvergenceError(BondYieldError):
    """Solver could not bracket a root or ran out of iterations."""


class MissingDataError(BondYieldError):
    """A required input (exit price, exit date, provider data) is absent."""

# config.py
# Purpose: Numerical constants shared by the accrual, assembly and solver modules

from __future__ import annotations

# Accrual and discounting use a fixed ACT/365 basis
DAYS_PER_YEAR = 365

# Newton-Raphson
INITIAL_GUESS = 0.1
TOL = 1e-7
MAX_ITER = 100
DERIVATIVE_FLOOR = 1e-12

# Bisection fallback
BRACKET = (-0.99, 10.0)
BRACKET_SCAN_POINTS = 1100
BISECT_XTOL = 1e-12
BISECT_MAX_ITER = 200

# Coupon frequencies whose period is a whole number of months
SUPPORTED_FREQUENCIES = (0, 1, 2, 3, 4, 6, 12)

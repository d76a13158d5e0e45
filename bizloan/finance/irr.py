"""Periodic NPV / IRR for the monthly evaluation cash flow series.

The series is ``[initial, net_1, ..., net_horizon]`` with index 0 at month 0.
All rates here are periodic (monthly) unless stated otherwise.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

import numpy as np

from bizloan.constants import (
    IRR_INITIAL_GUESS,
    IRR_MAX_ITERATIONS,
    IRR_RATE_FLOOR,
    IRR_TOLERANCE,
)

logger = logging.getLogger(__name__)


# ============================================================================
# NPV
# ============================================================================


def present_value(rate: float, cashflows: Sequence[float]) -> float:
    """Periodic Net Present Value.

    NPV(r) = sum_{t=0..n-1} CF[t] / (1+r)^t

    Parameters
    ----------
    rate : float
        Periodic discount rate (decimal, e.g. 0.01 for 1% per month)
    cashflows : Sequence[float]
        Cashflow series starting at t=0

    Returns
    -------
    float
        Net Present Value; the plain sum when ``rate == 0``

    Notes
    -----
    - Rate clamped just above -100% to keep the discount factor defined

    Examples
    --------
    >>> present_value(0.10, [-1000, 500, 500, 500])
    243.426...
    """
    cfs = np.asarray(cashflows, dtype=float)
    if cfs.size == 0:
        return 0.0
    r = float(rate)
    if r <= -1.0:
        r = -0.999999
    if r == 0.0:
        return float(cfs.sum())
    t = np.arange(cfs.size, dtype=float)
    return float(np.sum(cfs / (1.0 + r) ** t))


def _npv_and_derivative(rate: float, cfs: np.ndarray, t: np.ndarray):
    growth = (1.0 + rate) ** t
    value = np.sum(cfs / growth)
    slope = np.sum(-t * cfs / (growth * (1.0 + rate)))
    return float(value), float(slope)


# ============================================================================
# IRR
# ============================================================================


def irr(cashflows: Sequence[float], guess: float = IRR_INITIAL_GUESS) -> float:
    """Periodic Internal Rate of Return by Newton-Raphson.

    Finds r such that present_value(r, cashflows) = 0, starting at ``guess``.

    Returns
    -------
    float
        Periodic IRR as a decimal, or ``nan`` when no root was found

    Notes
    -----
    - At most 100 iterations; converged when successive estimates differ
      by less than 1e-8
    - The estimate is floored at -0.9999 every iteration
    - Zero derivative, non-finite values or no convergence give ``nan``;
      callers must check ``math.isfinite`` before formatting or comparing

    Known limitation
    ----------------
    A single fixed starting guess is used. For series with several sign
    changes the solver may land on a non-principal root or fail to converge.

    Examples
    --------
    >>> round(irr([-100.0, 60.0, 60.0]), 5)
    0.13066
    """
    cfs = np.asarray(cashflows, dtype=float)
    if cfs.size == 0 or not np.all(np.isfinite(cfs)):
        return math.nan

    t = np.arange(cfs.size, dtype=float)
    rate = float(guess)

    with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
        for iteration in range(IRR_MAX_ITERATIONS):
            value, slope = _npv_and_derivative(rate, cfs, t)
            if not (math.isfinite(value) and math.isfinite(slope)) or slope == 0.0:
                logger.debug("IRR: degenerate step at iteration %d (rate=%r)", iteration, rate)
                return math.nan

            new_rate = max(rate - value / slope, IRR_RATE_FLOOR)
            if not math.isfinite(new_rate):
                return math.nan
            if abs(new_rate - rate) < IRR_TOLERANCE:
                return new_rate
            rate = new_rate

    logger.debug("IRR: no convergence after %d iterations", IRR_MAX_ITERATIONS)
    return math.nan


def annualize_irr(monthly: float) -> float:
    """(1 + m)^12 - 1; ``nan`` passes through."""
    if monthly is None or not math.isfinite(monthly):
        return math.nan
    return (1.0 + monthly) ** 12 - 1.0


__all__ = [
    "present_value",
    "irr",
    "annualize_irr",
]

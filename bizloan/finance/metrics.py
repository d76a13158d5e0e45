"""
Feasibility Metrics Module

FEATURES:
---------
- NPV of the evaluation series at a monthly rate derived from the annual input
- IRR monthly (Newton-Raphson, see irr.py) and annualised
- Payback period as a 0-based month index on the evaluation series
- DSCR aggregated per 12-month block and averaged

OUTPUTS:
--------
Metrics dataclass with:
    npv, irr_monthly, irr_annual, payback_months (None = beyond horizon),
    dscr_average, dscr_blocks, monthly_discount_rate
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

import numpy as np

from bizloan.constants import DSCR_BLOCK_MONTHS
from bizloan.contracts import CashflowProjection, CashflowRow, Metrics
from bizloan.finance.irr import annualize_irr, irr, present_value
from bizloan.finance.utils import money

logger = logging.getLogger(__name__)

__all__ = [
    "monthly_discount_rate",
    "payback_period",
    "dscr_blocks",
    "dscr_average",
    "compute_metrics",
]


def monthly_discount_rate(annual_rate_pct: float) -> float:
    """Effective monthly rate equivalent to an annual percent: (1 + a)^(1/12) - 1.

    Loan rates are quoted nominal, so the scheduler uses a / 12. The discount
    rate is an annual hurdle compared against the annualised IRR, which
    compounds as (1 + m)^12 - 1; discounting at the compounding equivalent
    keeps NPV >= 0 and IRR >= hurdle on the same scale.
    """
    annual = money(annual_rate_pct) / 100.0
    if annual <= -1.0:
        return 0.0
    return (1.0 + annual) ** (1.0 / 12.0) - 1.0


# ============================================================================
# PAYBACK
# ============================================================================


def payback_period(cashflows: Sequence[float]) -> Optional[int]:
    """Smallest index t with sum(cashflows[0..t]) >= 0, or None if never reached.

    Index 0 is the initial cash flow, so a fully financed plan pays back at 0.
    """
    cfs = np.asarray(cashflows, dtype=float)
    if cfs.size == 0:
        return None
    hits = np.flatnonzero(np.cumsum(cfs) >= 0.0)
    if hits.size == 0:
        return None
    return int(hits[0])


# ============================================================================
# DSCR
# ============================================================================


def dscr_blocks(rows: Sequence[CashflowRow], block: int = DSCR_BLOCK_MONTHS) -> List[float]:
    """DSCR per consecutive block of months (last block may be shorter).

    DSCR_b = sum(CFO in block) / max(1, sum(loan payments in block))
    The max(1, ...) floor keeps blocks without scheduled payments defined.
    """
    ratios: List[float] = []
    for start in range(0, len(rows), block):
        chunk = rows[start:start + block]
        cfo = sum(r.cfo for r in chunk)
        debt_service = sum(r.loan_payment for r in chunk)
        ratios.append(cfo / max(1.0, debt_service))
    return ratios


def _mean_ratio(ratios: Sequence[float]) -> float:
    if not ratios:
        return 0.0
    return sum(ratios) / len(ratios)


def dscr_average(rows: Sequence[CashflowRow], block: int = DSCR_BLOCK_MONTHS) -> float:
    """Arithmetic mean of the block ratios; 0.0 when there are no rows."""
    return _mean_ratio(dscr_blocks(rows, block))


# ============================================================================
# SUMMARY
# ============================================================================


def compute_metrics(projection: CashflowProjection, discount_rate_pct: float) -> Metrics:
    """Run every KPI over a projection."""
    series = projection.evaluation_series()
    rate = monthly_discount_rate(discount_rate_pct)

    npv = present_value(rate, series)
    irr_m = irr(series)
    irr_a = annualize_irr(irr_m)
    payback = payback_period(series)
    blocks = dscr_blocks(projection.rows)
    dscr = _mean_ratio(blocks)

    if not math.isfinite(irr_m):
        logger.warning("IRR indeterminate: Newton-Raphson found no root for this series")
    if payback is None:
        logger.info("Payback not reached within %d months", len(projection.rows))

    return Metrics(
        npv=npv,
        irr_monthly=irr_m,
        irr_annual=irr_a,
        payback_months=payback,
        dscr_average=dscr,
        dscr_blocks=tuple(blocks),
        monthly_discount_rate=rate,
    )

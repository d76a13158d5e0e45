"""Four-criterion feasibility scoring."""

from __future__ import annotations

import math
from typing import Optional

from bizloan.constants import (
    MIN_DSCR,
    PAYBACK_LIMIT_MONTHS,
    VERDICT_FEASIBLE,
    VERDICT_MARGINAL,
    VERDICT_NOT_FEASIBLE,
)
from bizloan.contracts import Metrics, Verdict
from bizloan.finance.utils import money


def label_for_score(score: int) -> str:
    if score >= 4:
        return VERDICT_FEASIBLE
    if score >= 2:
        return VERDICT_MARGINAL
    return VERDICT_NOT_FEASIBLE


def evaluate(
    npv: float,
    irr_annual: float,
    payback_months: Optional[int],
    dscr_avg: float,
    annual_discount_rate_pct: float,
) -> Verdict:
    """Score the plan against four criteria.

    - NPV >= 0
    - annual IRR is finite and >= the discount rate (as a fraction)
    - payback is defined and within 36 months
    - DSCR average >= 1.2

    4 true -> Feasible, 2-3 -> Marginally Feasible, 0-1 -> Not Feasible.
    """
    hurdle = money(annual_discount_rate_pct) / 100.0

    npv_ok = math.isfinite(npv) and npv >= 0.0
    irr_ok = irr_annual is not None and math.isfinite(irr_annual) and irr_annual >= hurdle
    payback_ok = payback_months is not None and payback_months <= PAYBACK_LIMIT_MONTHS
    dscr_ok = math.isfinite(dscr_avg) and dscr_avg >= MIN_DSCR

    score = sum((npv_ok, irr_ok, payback_ok, dscr_ok))
    return Verdict(
        label=label_for_score(score),
        npv_ok=npv_ok,
        irr_ok=irr_ok,
        payback_ok=payback_ok,
        dscr_ok=dscr_ok,
    )


def evaluate_metrics(metrics: Metrics, annual_discount_rate_pct: float) -> Verdict:
    return evaluate(
        metrics.npv,
        metrics.irr_annual,
        metrics.payback_months,
        metrics.dscr_average,
        annual_discount_rate_pct,
    )


__all__ = ["evaluate", "evaluate_metrics", "label_for_score"]

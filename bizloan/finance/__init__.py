"""Finance computation engine: amortization, cash flow, metrics, verdict."""

from bizloan.finance.amortization import annuity_payment, schedule, summarize_schedule
from bizloan.finance.cashflow import (
    cap_principal,
    monthly_depreciation,
    project,
    total_capex,
    total_opex,
)
from bizloan.finance.irr import annualize_irr, irr, present_value
from bizloan.finance.metrics import compute_metrics, dscr_average, dscr_blocks, payback_period
from bizloan.finance.verdict import evaluate

__all__ = [
    "annuity_payment",
    "schedule",
    "summarize_schedule",
    "cap_principal",
    "monthly_depreciation",
    "project",
    "total_capex",
    "total_opex",
    "present_value",
    "irr",
    "annualize_irr",
    "payback_period",
    "dscr_blocks",
    "dscr_average",
    "compute_metrics",
    "evaluate",
]

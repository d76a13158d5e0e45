"""Monthly cash flow projection for the financing plan.

Order of the waterfall per month:

    revenue - opex                  = EBITDA
    EBITDA - depreciation           = EBIT
    EBIT - loan interest            = pre-tax profit (tax rate fixed at 0)
    pre-tax profit + depreciation   = CFO (non-cash add-back)
    CFO - loan payment              = net cash flow

Month 0 carries the equity/financing view: -total CAPEX + capped principal.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence, Tuple

from bizloan.constants import MAX_PLAFON, MAX_TOTAL_OPEX, TAX_RATE
from bizloan.contracts import (
    AmortizationRow,
    CapexLine,
    CashflowProjection,
    CashflowRow,
    OpexLine,
)
from bizloan.finance.utils import money, months as as_months

logger = logging.getLogger(__name__)


# =============================================================================
# Policy caps and aggregates
# =============================================================================


def cap_principal(principal: float) -> Tuple[float, bool]:
    """Clip the requested loan to the plafon. Returns (capped, clamped)."""
    p = max(0.0, money(principal))
    if p > MAX_PLAFON:
        logger.warning("Loan principal %.2f exceeds plafon; clamped to %.2f", p, MAX_PLAFON)
        return MAX_PLAFON, True
    return p, False


def total_capex(lines: Iterable[CapexLine]) -> float:
    return sum(max(0.0, money(line.value)) for line in lines)


def total_opex(lines: Iterable[OpexLine]) -> Tuple[float, bool]:
    """Sum monthly OPEX lines and clip to the policy cap. Returns (total, clamped)."""
    total = sum(max(0.0, money(line.monthly)) for line in lines)
    if total > MAX_TOTAL_OPEX:
        logger.warning("Total OPEX %.2f exceeds cap; clamped to %.2f", total, MAX_TOTAL_OPEX)
        return MAX_TOTAL_OPEX, True
    return total, False


def monthly_depreciation(lines: Iterable[CapexLine]) -> float:
    """Straight-line depreciation per month summed over CAPEX lines.

    Lines with a non-positive economic life contribute nothing.
    """
    total = 0.0
    for line in lines:
        life = money(line.life_years)
        if life <= 0:
            continue
        total += max(0.0, money(line.value)) / (life * 12.0)
    return total


# =============================================================================
# Projection
# =============================================================================


def project(
    revenue_start: float,
    growth_pct_monthly: float,
    horizon_months: int,
    monthly_opex: float,
    monthly_depreciation: float,
    loan_schedule: Sequence[AmortizationRow],
    capped_principal: float,
    total_capex: float,
) -> CashflowProjection:
    """Project monthly cash flows over the horizon.

    Months beyond the loan schedule carry zero interest and payment; the
    balance column holds the capped principal for those months.
    """
    horizon = max(0, as_months(horizon_months))
    revenue0 = money(revenue_start)
    growth = money(growth_pct_monthly) / 100.0
    opex = money(monthly_opex)
    dep = money(monthly_depreciation)
    principal = money(capped_principal)

    rows: List[CashflowRow] = []
    for m in range(1, horizon + 1):
        revenue = revenue0 * (1.0 + growth) ** (m - 1)

        if m <= len(loan_schedule):
            loan = loan_schedule[m - 1]
            interest, payment, balance = loan.interest, loan.payment, loan.balance
        else:
            interest, payment, balance = 0.0, 0.0, principal

        ebitda = revenue - opex
        ebit = ebitda - dep
        pretax = ebit - interest
        profit = pretax * (1.0 - TAX_RATE)
        cfo = profit + dep
        net = cfo - payment

        rows.append(
            CashflowRow(
                month=m,
                revenue=revenue,
                opex=opex,
                depreciation=dep,
                ebitda=ebitda,
                ebit=ebit,
                pretax_profit=pretax,
                interest=interest,
                loan_payment=payment,
                cfo=cfo,
                net_cashflow=net,
                loan_balance=balance,
            )
        )

    initial = -money(total_capex) + principal
    logger.debug("Projected %d months; initial cash flow %.2f", len(rows), initial)
    return CashflowProjection(rows=tuple(rows), initial_cashflow=initial)


__all__ = [
    "cap_principal",
    "total_capex",
    "total_opex",
    "monthly_depreciation",
    "project",
]

"""Loan amortization schedule for the financing plan.

FEATURES:
---------
- Monthly schedule over the loan tenor, 1-based month index
- Grace period at the front of the tenor, two modes:
    * interest-only: borrower services interest, balance unchanged
    * full-capitalization: nothing is paid, interest accrues onto the balance
- Level annuity payment on the post-grace balance (straight-line principal
  when the rate is zero)
- Balance clamped at zero, never negative

OUTPUTS:
--------
List[AmortizationRow] of length ``months`` (empty when months <= 0), plus a
LoanSummary aggregate for the report layer.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from bizloan.constants import GRACE_FULL_CAPITALIZATION, GRACE_INTEREST_ONLY, GRACE_MODES
from bizloan.contracts import AmortizationRow, LoanSummary
from bizloan.finance.utils import money, months as as_months

logger = logging.getLogger(__name__)


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================


def monthly_rate(annual_rate_pct: float) -> float:
    """Nominal annual percent -> monthly periodic rate."""
    return money(annual_rate_pct) / 100.0 / 12.0


def annuity_payment(balance: float, rate: float, nper: int) -> float:
    """Level payment that amortizes ``balance`` over ``nper`` periods."""
    if nper <= 0:
        return 0.0
    if rate == 0:
        return balance / nper
    return balance * rate / (1.0 - (1.0 + rate) ** (-nper))


def normalise_grace_mode(mode: str) -> str:
    """Accept 'interest_only' / 'Full Capitalization' spellings; unknown -> interest-only."""
    key = str(mode or "").strip().lower().replace("_", "-").replace(" ", "-")
    if key in GRACE_MODES:
        return key
    logger.warning("Unknown grace mode %r; treating as %s", mode, GRACE_INTEREST_ONLY)
    return GRACE_INTEREST_ONLY


# ============================================================================
# SCHEDULE
# ============================================================================


def schedule(
    principal: float,
    annual_rate_pct: float,
    months: int,
    grace_months: int = 0,
    grace_mode: str = GRACE_INTEREST_ONLY,
) -> List[AmortizationRow]:
    """Build the month-by-month repayment schedule.

    Parameters
    ----------
    principal : float
        Loan amount (already capped by the caller).
    annual_rate_pct : float
        Nominal annual rate in percent, e.g. 11.0.
    months : int
        Tenor in months.
    grace_months : int
        Leading months without principal repayment.
    grace_mode : str
        ``"interest-only"`` or ``"full-capitalization"``.
    """
    n = as_months(months)
    if n <= 0:
        return []

    i = monthly_rate(annual_rate_pct)
    grace = max(0, min(as_months(grace_months), n))
    mode = normalise_grace_mode(grace_mode)
    bal = max(0.0, money(principal))
    rows: List[AmortizationRow] = []

    # Grace period
    for m in range(1, grace + 1):
        interest = bal * i
        if mode == GRACE_FULL_CAPITALIZATION:
            bal += interest
            rows.append(AmortizationRow(m, 0.0, interest, 0.0, bal))
        else:
            rows.append(AmortizationRow(m, 0.0, interest, interest, bal))

    # Amortization period
    remaining = n - grace
    if remaining > 0:
        pmt = annuity_payment(bal, i, remaining)
        for m in range(grace + 1, n + 1):
            interest = bal * i
            principal_part = max(0.0, pmt - interest)
            bal = max(0.0, bal - principal_part)
            rows.append(AmortizationRow(m, principal_part, interest, pmt, bal))

    logger.debug(
        "Loan schedule: %d months (%d grace, %s), monthly rate %.6f, final balance %.4f",
        n,
        grace,
        mode,
        i,
        rows[-1].balance,
    )
    return rows


def summarize_schedule(rows: Sequence[AmortizationRow], principal: float) -> LoanSummary:
    """Totals over a schedule: interest paid, capitalised interest, level payment."""
    total_interest = sum(r.interest for r in rows)
    total_paid = sum(r.payment for r in rows)
    # Interest accrued but not paid went onto the balance.
    capitalized = sum(r.interest for r in rows if r.payment == 0.0 and r.principal == 0.0)
    amortizing = [r for r in rows if r.principal > 0.0]
    level = amortizing[0].payment if amortizing else 0.0
    return LoanSummary(
        principal=float(principal),
        level_payment=level,
        total_interest=total_interest,
        total_paid=total_paid,
        capitalized_interest=capitalized,
        final_balance=rows[-1].balance if rows else float(principal),
    )


__all__ = [
    "monthly_rate",
    "annuity_payment",
    "normalise_grace_mode",
    "schedule",
    "summarize_schedule",
]

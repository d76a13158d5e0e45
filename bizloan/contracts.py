"""Contracts and data structures for the feasibility engine.

Every object here is a value object: produced by one stage of the pipeline
and passed by value to the next. Nothing persists beyond a single
evaluation run.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from bizloan.constants import GRACE_INTEREST_ONLY


# =============================================================================
# Inputs
# =============================================================================


@dataclass(frozen=True)
class LoanTerms:
    """Loan structure as entered by the borrower."""

    principal: float
    annual_rate_pct: float
    tenor_months: int
    grace_months: int = 0
    grace_mode: str = GRACE_INTEREST_ONLY


@dataclass(frozen=True)
class CapexLine:
    name: str
    value: float
    life_years: float  # economic life, straight-line depreciation


@dataclass(frozen=True)
class OpexLine:
    name: str
    monthly: float


@dataclass(frozen=True)
class ScenarioInputs:
    """Immutable scenario passed into the pipeline."""

    revenue_start: float
    growth_pct_monthly: float
    horizon_months: int
    discount_rate_pct: float
    loan: LoanTerms
    capex: Tuple[CapexLine, ...] = ()
    opex: Tuple[OpexLine, ...] = ()
    scenario_name: str = "default_scenario"


@dataclass(frozen=True)
class PolicyFlags:
    """Which inputs were clamped before evaluation."""

    principal_clamped: bool = False
    opex_clamped: bool = False
    horizon_clamped: bool = False
    tenor_clamped: bool = False
    grace_clamped: bool = False

    @property
    def any(self) -> bool:
        return any(asdict(self).values())

    def warnings(self) -> List[str]:
        return [name for name, hit in asdict(self).items() if hit]


# =============================================================================
# Loan schedule
# =============================================================================


@dataclass(frozen=True)
class AmortizationRow:
    month: int  # 1-based
    principal: float
    interest: float
    payment: float
    balance: float


@dataclass(frozen=True)
class LoanSummary:
    """Aggregates over an amortization schedule."""

    principal: float
    level_payment: float
    total_interest: float
    total_paid: float
    capitalized_interest: float
    final_balance: float


# =============================================================================
# Cash flow projection
# =============================================================================


@dataclass(frozen=True)
class CashflowRow:
    month: int
    revenue: float
    opex: float
    depreciation: float
    ebitda: float
    ebit: float
    pretax_profit: float
    interest: float
    loan_payment: float
    cfo: float
    net_cashflow: float
    loan_balance: float


@dataclass(frozen=True)
class CashflowProjection:
    rows: Tuple[CashflowRow, ...]
    initial_cashflow: float

    def evaluation_series(self) -> List[float]:
        """[initial, net_1, ..., net_horizon]; the sole input to NPV/IRR/payback."""
        return [self.initial_cashflow] + [r.net_cashflow for r in self.rows]


# =============================================================================
# Metrics and verdict
# =============================================================================


@dataclass(frozen=True)
class Metrics:
    """KPI bundle. IRR values are NaN when the solver found no root;
    payback_months is None when the cumulative series never turns non-negative.
    """

    npv: float
    irr_monthly: float
    irr_annual: float
    payback_months: Optional[int]
    dscr_average: float
    dscr_blocks: Tuple[float, ...] = ()
    monthly_discount_rate: float = 0.0

    @property
    def irr_defined(self) -> bool:
        return math.isfinite(self.irr_annual)

    @property
    def payback_defined(self) -> bool:
        return self.payback_months is not None


@dataclass(frozen=True)
class Verdict:
    label: str
    npv_ok: bool
    irr_ok: bool
    payback_ok: bool
    dscr_ok: bool

    @property
    def score(self) -> int:
        return sum(self.criteria.values())

    @property
    def criteria(self) -> Dict[str, bool]:
        return {
            "npv": self.npv_ok,
            "irr": self.irr_ok,
            "payback": self.payback_ok,
            "dscr": self.dscr_ok,
        }


@dataclass
class ScenarioResult:
    """Complete scenario evaluation result."""

    scenario_name: str
    inputs: ScenarioInputs
    flags: PolicyFlags
    capped_principal: float
    total_capex: float
    total_opex: float
    monthly_depreciation: float
    schedule: Tuple[AmortizationRow, ...]
    loan_summary: LoanSummary
    projection: CashflowProjection
    metrics: Metrics
    verdict: Verdict
    config_path: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Flat KPI mapping for legacy / JSON-style consumers."""
        m = self.metrics
        return {
            "scenario_name": self.scenario_name,
            "config_path": self.config_path,
            "capped_principal": self.capped_principal,
            "total_capex": self.total_capex,
            "total_opex": self.total_opex,
            "monthly_depreciation": self.monthly_depreciation,
            "initial_cashflow": self.projection.initial_cashflow,
            "npv": m.npv,
            "irr_monthly": m.irr_monthly if m.irr_defined else None,
            "irr_annual": m.irr_annual if m.irr_defined else None,
            "payback_months": m.payback_months,
            "dscr_average": m.dscr_average,
            "dscr_blocks": list(m.dscr_blocks),
            "verdict": self.verdict.label,
            "score": self.verdict.score,
            "criteria": self.verdict.criteria,
            "flags": asdict(self.flags),
            "level_payment": self.loan_summary.level_payment,
            "total_interest": self.loan_summary.total_interest,
        }


__all__ = [
    "LoanTerms",
    "CapexLine",
    "OpexLine",
    "ScenarioInputs",
    "PolicyFlags",
    "AmortizationRow",
    "LoanSummary",
    "CashflowRow",
    "CashflowProjection",
    "Metrics",
    "Verdict",
    "ScenarioResult",
]

"""
Pipeline tests: scheduler -> projector -> metrics -> verdict.

One concrete scenario per verdict tier, plus the policy caps and the
collector bounds applied by the pipeline itself.
"""

import math
from pathlib import Path

import pytest

from bizloan.analytics.evaluate_scenario import evaluate_inputs, evaluate_scenario_as_dict
from bizloan.contracts import CapexLine, LoanTerms, OpexLine, ScenarioInputs


def _inputs(**overrides):
    base = dict(
        revenue_start=30_000_000.0,
        growth_pct_monthly=0.0,
        horizon_months=36,
        discount_rate_pct=12.0,
        loan=LoanTerms(principal=80_000_000.0, annual_rate_pct=12.0, tenor_months=24),
        capex=(CapexLine("equipment", 100_000_000.0, 5.0),),
        opex=(OpexLine("operations", 10_000_000.0),),
        scenario_name="unit",
    )
    base.update(overrides)
    return ScenarioInputs(**base)


def _no_loan():
    return LoanTerms(principal=0.0, annual_rate_pct=0.0, tenor_months=12)


# ---------------------------------------------------------------------------
# Verdict tiers
# ---------------------------------------------------------------------------


def test_feasible_scenario():
    result = evaluate_inputs(_inputs())

    m = result.metrics
    assert result.projection.initial_cashflow == pytest.approx(-20_000_000.0)
    assert m.npv > 0
    assert m.irr_defined and m.irr_annual > 0.12
    assert m.payback_months == 2
    assert m.dscr_average >= 1.2
    assert result.verdict.score == 4
    assert result.verdict.label == "Feasible"


def test_marginally_feasible_scenario():
    # No loan, 1M net per month against a 30M outlay: pays back in month 30,
    # DSCR is trivially covered, but the 20% hurdle is not met.
    result = evaluate_inputs(
        _inputs(
            revenue_start=2_000_000.0,
            discount_rate_pct=20.0,
            loan=_no_loan(),
            capex=(CapexLine("fit-out", 30_000_000.0, 5.0),),
            opex=(OpexLine("operations", 1_000_000.0),),
        )
    )

    m = result.metrics
    assert m.payback_months == 30
    assert m.npv < 0
    assert m.irr_defined and 0.12 < m.irr_annual < 0.20
    v = result.verdict
    assert (v.npv_ok, v.irr_ok, v.payback_ok, v.dscr_ok) == (False, False, True, True)
    assert v.label == "Marginally Feasible"


def test_not_feasible_scenario():
    result = evaluate_inputs(
        _inputs(
            revenue_start=1_500_000.0,
            discount_rate_pct=20.0,
            loan=_no_loan(),
            capex=(CapexLine("fit-out", 30_000_000.0, 5.0),),
            opex=(OpexLine("operations", 1_000_000.0),),
        )
    )

    m = result.metrics
    assert m.payback_months is None
    assert m.npv < 0
    assert not (m.irr_defined and m.irr_annual >= 0.20)
    assert result.verdict.score <= 1
    assert result.verdict.label == "Not Feasible"


# ---------------------------------------------------------------------------
# Policy caps
# ---------------------------------------------------------------------------


def test_opex_above_cap_is_clamped_everywhere():
    result = evaluate_inputs(
        _inputs(opex=(OpexLine("payroll", 400_000_000.0), OpexLine("materials", 200_000_000.0)))
    )

    assert result.total_opex == 500_000_000.0
    assert result.flags.opex_clamped
    assert all(row.opex == 500_000_000.0 for row in result.projection.rows)
    first = result.projection.rows[0]
    assert first.ebitda == pytest.approx(first.revenue - 500_000_000.0)


def test_principal_above_plafon_is_clamped_before_scheduling():
    result = evaluate_inputs(
        _inputs(loan=LoanTerms(principal=4_000_000_000.0, annual_rate_pct=0.0, tenor_months=12))
    )

    assert result.capped_principal == 3_000_000_000.0
    assert result.flags.principal_clamped
    assert result.schedule[0].payment == 250_000_000.0
    assert sum(r.principal for r in result.schedule) == pytest.approx(3_000_000_000.0)
    assert result.projection.initial_cashflow == pytest.approx(-100_000_000.0 + 3_000_000_000.0)
    assert "principal_clamped" in result.flags.warnings()


def test_no_flags_for_in_policy_scenario():
    result = evaluate_inputs(_inputs())
    assert not result.flags.any
    assert result.flags.warnings() == []


# ---------------------------------------------------------------------------
# Collector bounds re-applied by the engine
# ---------------------------------------------------------------------------


def test_horizon_tenor_and_grace_are_clamped():
    result = evaluate_inputs(
        _inputs(
            horizon_months=500,
            loan=LoanTerms(principal=1_000_000.0, annual_rate_pct=10.0, tenor_months=600, grace_months=20),
        )
    )

    assert len(result.projection.rows) == 120
    assert len(result.schedule) == 120
    assert result.inputs.loan.grace_months == 12
    assert result.flags.horizon_clamped
    assert result.flags.tenor_clamped
    assert result.flags.grace_clamped


def test_grace_never_exceeds_tenor_and_horizon_has_floor():
    result = evaluate_inputs(
        _inputs(
            horizon_months=0,
            loan=LoanTerms(principal=1_000_000.0, annual_rate_pct=10.0, tenor_months=6, grace_months=10),
        )
    )

    assert len(result.projection.rows) == 1
    assert result.inputs.loan.grace_months == 6
    assert all(r.principal == 0.0 for r in result.schedule)


def test_horizon_longer_than_tenor_holds_principal_in_balance_column():
    result = evaluate_inputs(_inputs(horizon_months=30))

    tail = result.projection.rows[24:]
    assert all(r.loan_payment == 0.0 and r.interest == 0.0 for r in tail)
    assert all(r.loan_balance == 80_000_000.0 for r in tail)


def test_non_finite_money_inputs_degrade_to_zero():
    result = evaluate_inputs(
        _inputs(
            revenue_start=math.nan,
            capex=(CapexLine("bad", math.inf, 5.0),),
            opex=(OpexLine("bad", math.nan),),
        )
    )

    assert result.total_capex == 0.0
    assert result.total_opex == 0.0
    assert all(r.revenue == 0.0 for r in result.projection.rows)


def test_to_dict_exposes_flat_kpis():
    out = evaluate_inputs(_inputs()).to_dict()

    for key in ("npv", "irr_monthly", "irr_annual", "payback_months", "dscr_average", "verdict", "flags"):
        assert key in out
    assert out["verdict"] == "Feasible"
    assert out["criteria"] == {"npv": True, "irr": True, "payback": True, "dscr": True}


def test_evaluate_scenario_as_dict_on_shipped_file():
    path = Path(__file__).resolve().parents[1] / "scenarios" / "kedai_kopi.yaml"
    out = evaluate_scenario_as_dict(path)
    assert out["scenario_name"] == "kedai_kopi"
    assert out["config_path"] == str(path)
    assert out["verdict"] in ("Feasible", "Marginally Feasible", "Not Feasible")
    assert len(out["dscr_blocks"]) == 3


# ---------------------------------------------------------------------------
# Non-numeric month counts degrade instead of raising
# ---------------------------------------------------------------------------


def test_nan_horizon_degrades_to_one_month():
    result = evaluate_inputs(_inputs(horizon_months=math.nan))
    assert len(result.projection.rows) == 1
    assert result.flags.horizon_clamped


def test_none_grace_months_means_no_grace():
    loan = LoanTerms(80_000_000.0, 12.0, 24, grace_months=None)
    result = evaluate_inputs(_inputs(loan=loan))
    assert result.inputs.loan.grace_months == 0
    assert not result.flags.grace_clamped
    assert result.schedule[0].principal > 0


def test_in_bounds_float_months_are_not_flagged():
    loan = LoanTerms(80_000_000.0, 12.0, 24.0, grace_months=2.0)
    result = evaluate_inputs(_inputs(horizon_months=24.0, loan=loan))
    assert result.inputs.horizon_months == 24
    assert result.inputs.loan.tenor_months == 24
    assert result.inputs.loan.grace_months == 2
    assert not result.flags.any
    assert len(result.projection.rows) == 24


def test_non_numeric_tenor_degrades_to_one_month():
    loan = LoanTerms(1_200_000.0, 0.0, "soon")
    result = evaluate_inputs(_inputs(loan=loan))
    assert result.inputs.loan.tenor_months == 1
    assert result.flags.tenor_clamped
    assert result.schedule[0].payment == pytest.approx(1_200_000.0)

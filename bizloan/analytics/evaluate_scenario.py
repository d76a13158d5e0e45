"""Central scenario evaluator: scheduler -> projector -> metrics -> verdict."""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from bizloan.analytics.scenario_loader import (
    inputs_from_config,
    load_scenario_config,
    normalise_inputs,
)
from bizloan.analytics.schema_guard import validate_config
from bizloan.contracts import ScenarioInputs, ScenarioResult
from bizloan.finance.amortization import schedule, summarize_schedule
from bizloan.finance.cashflow import (
    cap_principal,
    monthly_depreciation,
    project,
    total_capex,
    total_opex,
)
from bizloan.finance.metrics import compute_metrics
from bizloan.finance.verdict import evaluate_metrics

logger = logging.getLogger(__name__)


def evaluate_inputs(inputs: ScenarioInputs) -> ScenarioResult:
    """Run the full pipeline over one scenario.

    Inputs are re-validated and clamped here, so the engine can be used as a
    standalone library without the loader.
    """
    inputs, flags = normalise_inputs(inputs)
    loan = inputs.loan

    principal, principal_hit = cap_principal(loan.principal)
    opex, opex_hit = total_opex(inputs.opex)
    capex = total_capex(inputs.capex)
    depreciation = monthly_depreciation(inputs.capex)
    flags = replace(flags, principal_clamped=principal_hit, opex_clamped=opex_hit)

    loan_rows = schedule(
        principal,
        loan.annual_rate_pct,
        loan.tenor_months,
        loan.grace_months,
        loan.grace_mode,
    )
    projection = project(
        inputs.revenue_start,
        inputs.growth_pct_monthly,
        inputs.horizon_months,
        opex,
        depreciation,
        loan_rows,
        principal,
        capex,
    )
    metrics = compute_metrics(projection, inputs.discount_rate_pct)
    verdict = evaluate_metrics(metrics, inputs.discount_rate_pct)

    result = ScenarioResult(
        scenario_name=inputs.scenario_name,
        inputs=inputs,
        flags=flags,
        capped_principal=principal,
        total_capex=capex,
        total_opex=opex,
        monthly_depreciation=depreciation,
        schedule=tuple(loan_rows),
        loan_summary=summarize_schedule(loan_rows, principal),
        projection=projection,
        metrics=metrics,
        verdict=verdict,
    )

    logger.info(
        "Scenario '%s': NPV=%.2f, IRR(annual)=%s, payback=%s, DSCR=%.2f -> %s (%d/4)",
        result.scenario_name,
        metrics.npv,
        f"{metrics.irr_annual:.2%}" if metrics.irr_defined else "indeterminate",
        metrics.payback_months if metrics.payback_defined else "beyond horizon",
        metrics.dscr_average,
        verdict.label,
        verdict.score,
    )
    if flags.any:
        logger.warning("Scenario '%s': inputs clamped: %s", result.scenario_name, ", ".join(flags.warnings()))
    return result


def evaluate_config(
    config: Mapping[str, Any],
    scenario_name: Optional[str] = None,
    config_path: str = "<in-memory>",
) -> ScenarioResult:
    """Validate a raw config mapping and evaluate it."""
    validate_config(dict(config), config_path=config_path)
    result = evaluate_inputs(inputs_from_config(config, scenario_name=scenario_name))
    result.config_path = config_path
    result.meta = dict(config.get("meta", {}) or {})
    return result


def evaluate_scenario(config_path: str | Path, scenario_name: Optional[str] = None) -> ScenarioResult:
    """Load, validate and evaluate a scenario file."""
    path_obj = Path(config_path)
    if not path_obj.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    logger.info("Loading scenario: %s", config_path)
    config = load_scenario_config(path_obj)
    return evaluate_config(config, scenario_name=scenario_name, config_path=str(config_path))


def evaluate_scenario_as_dict(config_path: str | Path) -> Dict[str, Any]:
    """Flat dict view of evaluate_scenario()."""
    return evaluate_scenario(config_path).to_dict()


__all__ = [
    "evaluate_inputs",
    "evaluate_config",
    "evaluate_scenario",
    "evaluate_scenario_as_dict",
]

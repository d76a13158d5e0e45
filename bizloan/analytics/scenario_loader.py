"""
Scenario configuration loader (the input collector).

Responsibilities:
- Load YAML / JSON scenario files; top level must be a mapping.
- Register the scenario fields with the schema registry.
- Build an immutable ScenarioInputs from a raw mapping.
- Clamp horizon, tenor and grace to the collector bounds and report
  which ones were touched.

Business values are never rejected here: non-numeric or non-finite numbers
become 0, exactly as the engine treats them.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

import yaml

from bizloan.analytics.config_schema import FieldSpec, get_field, register_fields
from bizloan.constants import (
    DEFAULT_DISCOUNT_RATE_PCT,
    GRACE_INTEREST_ONLY,
    GRACE_MODES,
    MAX_GRACE_MONTHS,
    MAX_HORIZON_MONTHS,
    MAX_TENOR_MONTHS,
    MIN_HORIZON_MONTHS,
    MIN_TENOR_MONTHS,
)
from bizloan.contracts import CapexLine, LoanTerms, OpexLine, PolicyFlags, ScenarioInputs
from bizloan.finance.utils import clamp, get_nested, money, months

logger = logging.getLogger(__name__)


class ScenarioConfigError(ValueError):
    """Configuration-level error for scenario loading."""


# ---------------------------------------------------------------------------
# File loading
# ---------------------------------------------------------------------------


def _load_raw_config(path: Path) -> Dict[str, Any]:
    """Load a raw scenario configuration from YAML or JSON."""
    if not path.exists():
        raise FileNotFoundError(f"Scenario config not found: {path}")

    suffix = path.suffix.lower()
    with path.open("r", encoding="utf-8") as f:
        try:
            if suffix in (".yml", ".yaml"):
                data = yaml.safe_load(f)
            elif suffix == ".json":
                data = json.load(f)
            else:
                raise ScenarioConfigError(
                    f"Unsupported scenario config extension '{suffix}' for {path}"
                )
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise ScenarioConfigError(f"Could not parse scenario config {path}: {exc}") from exc

    if data is None:
        raise ScenarioConfigError(f"Empty configuration in file: {path}")

    if not isinstance(data, dict):
        raise ScenarioConfigError(
            f"Expected a mapping at top level of {path}, "
            f"got {type(data).__name__}"
        )

    return data


def _ensure_meta_source(cfg: Dict[str, Any], path: Path) -> None:
    meta = cfg.setdefault("meta", {})
    meta.setdefault("source_path", str(path))


def load_scenario_config(path: str | Path) -> Dict[str, Any]:
    """Load a scenario file and attach a meta.source_path breadcrumb."""
    p = Path(path)
    cfg = _load_raw_config(p)
    _ensure_meta_source(cfg, p)
    logger.info("Loaded scenario config %s", p)
    return cfg


# ---------------------------------------------------------------------------
# Field registration
# ---------------------------------------------------------------------------


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _is_grace_mode(v: Any) -> bool:
    return str(v).strip().lower().replace("_", "-").replace(" ", "-") in GRACE_MODES


SCENARIO_FIELDS = (
    FieldSpec(
        module="scenario",
        name="horizon_months",
        paths=(("horizon_months",), ("projection", "horizon_months")),
        coerce=months,
        validator=_is_number,
        description="Projection horizon in months; clamped to [1, 120].",
    ),
    FieldSpec(
        module="scenario",
        name="revenue_start",
        paths=(("revenue", "start_monthly"), ("revenue", "start")),
        coerce=money,
        validator=_is_number,
        description="Revenue in the first projected month.",
    ),
    FieldSpec(
        module="scenario",
        name="growth_pct_monthly",
        paths=(("revenue", "growth_pct_monthly"), ("revenue", "growth_pct")),
        required=False,
        severity="warning",
        default=0.0,
        coerce=money,
        validator=_is_number,
        description="Monthly revenue growth in percent.",
    ),
    FieldSpec(
        module="scenario",
        name="discount_rate_pct",
        paths=(("discount_rate_pct",), ("returns", "discount_rate_pct")),
        required=False,
        severity="warning",
        default=DEFAULT_DISCOUNT_RATE_PCT,
        coerce=money,
        validator=_is_number,
        description="Annual discount rate in percent.",
    ),
)

LOAN_FIELDS = (
    FieldSpec(
        module="loan",
        name="principal",
        paths=(("loan", "principal"), ("loan", "amount")),
        coerce=money,
        validator=_is_number,
        description="Requested loan amount; clipped to the plafon.",
    ),
    FieldSpec(
        module="loan",
        name="annual_rate_pct",
        paths=(("loan", "annual_rate_pct"), ("loan", "rate_pct")),
        coerce=money,
        validator=_is_number,
        description="Nominal annual interest rate in percent.",
    ),
    FieldSpec(
        module="loan",
        name="tenor_months",
        paths=(("loan", "tenor_months"),),
        coerce=months,
        validator=_is_number,
        description="Loan tenor in months; clamped to [1, 120].",
    ),
    FieldSpec(
        module="loan",
        name="grace_months",
        paths=(("loan", "grace_months"),),
        required=False,
        severity="warning",
        default=0,
        coerce=months,
        validator=_is_number,
        description="Grace period in months; clamped to [0, 12] and <= tenor.",
    ),
    FieldSpec(
        module="loan",
        name="grace_mode",
        paths=(("loan", "grace_mode"),),
        required=False,
        severity="warning",
        default=GRACE_INTEREST_ONLY,
        coerce=str,
        validator=_is_grace_mode,
        description="interest-only or full-capitalization.",
    ),
)

register_fields("scenario", SCENARIO_FIELDS)
register_fields("loan", LOAN_FIELDS)


# ---------------------------------------------------------------------------
# Mapping -> ScenarioInputs
# ---------------------------------------------------------------------------


def _read(cfg: Mapping[str, Any], module: str, name: str) -> Any:
    return get_field(module, name).read(cfg)


def _capex_lines(raw: Any) -> Tuple[CapexLine, ...]:
    lines: List[CapexLine] = []
    for idx, item in enumerate(raw or []):
        if not isinstance(item, Mapping):
            logger.warning("Skipping CAPEX entry %d: expected a mapping, got %r", idx, item)
            continue
        lines.append(
            CapexLine(
                name=str(item.get("name", f"capex_{idx + 1}")),
                value=money(item.get("value", item.get("amount"))),
                life_years=money(item.get("life_years", item.get("life"))),
            )
        )
    return tuple(lines)


def _opex_lines(raw: Any) -> Tuple[OpexLine, ...]:
    lines: List[OpexLine] = []
    for idx, item in enumerate(raw or []):
        if not isinstance(item, Mapping):
            logger.warning("Skipping OPEX entry %d: expected a mapping, got %r", idx, item)
            continue
        lines.append(
            OpexLine(
                name=str(item.get("name", f"opex_{idx + 1}")),
                monthly=money(item.get("monthly", item.get("amount"))),
            )
        )
    return tuple(lines)


def inputs_from_config(cfg: Mapping[str, Any], scenario_name: str | None = None) -> ScenarioInputs:
    """Build ScenarioInputs from a raw config mapping (no clamping)."""
    loan = LoanTerms(
        principal=_read(cfg, "loan", "principal"),
        annual_rate_pct=_read(cfg, "loan", "annual_rate_pct"),
        tenor_months=_read(cfg, "loan", "tenor_months"),
        grace_months=_read(cfg, "loan", "grace_months"),
        grace_mode=_read(cfg, "loan", "grace_mode"),
    )
    name = scenario_name or cfg.get("scenario_name")
    if not name:
        source = get_nested(dict(cfg), ("meta", "source_path"))
        name = Path(source).stem if source else "default_scenario"

    return ScenarioInputs(
        revenue_start=_read(cfg, "scenario", "revenue_start"),
        growth_pct_monthly=_read(cfg, "scenario", "growth_pct_monthly"),
        horizon_months=_read(cfg, "scenario", "horizon_months"),
        discount_rate_pct=_read(cfg, "scenario", "discount_rate_pct"),
        loan=loan,
        capex=_capex_lines(cfg.get("capex")),
        opex=_opex_lines(cfg.get("opex")),
        scenario_name=str(name),
    )


# ---------------------------------------------------------------------------
# Collector bounds
# ---------------------------------------------------------------------------


def _bounded(value: Any, lo: int, hi: int) -> Tuple[int, bool]:
    """Whole months clamped to [lo, hi]; flagged only when clamping moved it."""
    coerced = months(value)
    out = int(clamp(coerced, lo, hi))
    return out, out != coerced


def normalise_inputs(inputs: ScenarioInputs) -> Tuple[ScenarioInputs, PolicyFlags]:
    """
    Clamp horizon to [1, 120], tenor to [1, 120] and grace to [0, 12] and
    <= tenor. Money caps (plafon, OPEX) are applied later at the point of use.

    Month counts that are not numbers (None, NaN, strings) count as 0 before
    clamping, so they never raise here.
    """
    horizon, horizon_hit = _bounded(inputs.horizon_months, MIN_HORIZON_MONTHS, MAX_HORIZON_MONTHS)
    tenor, tenor_hit = _bounded(inputs.loan.tenor_months, MIN_TENOR_MONTHS, MAX_TENOR_MONTHS)
    grace, grace_hit = _bounded(inputs.loan.grace_months, 0, min(MAX_GRACE_MONTHS, tenor))

    for label, hit, before, after in (
        ("horizon_months", horizon_hit, inputs.horizon_months, horizon),
        ("tenor_months", tenor_hit, inputs.loan.tenor_months, tenor),
        ("grace_months", grace_hit, inputs.loan.grace_months, grace),
    ):
        if hit:
            logger.warning("%s=%r out of bounds; clamped to %s", label, before, after)

    loan = replace(inputs.loan, tenor_months=tenor, grace_months=grace)
    normalised = replace(inputs, horizon_months=horizon, loan=loan)
    flags = PolicyFlags(
        horizon_clamped=horizon_hit,
        tenor_clamped=tenor_hit,
        grace_clamped=grace_hit,
    )
    return normalised, flags


__all__ = [
    "ScenarioConfigError",
    "SCENARIO_FIELDS",
    "LOAN_FIELDS",
    "load_scenario_config",
    "inputs_from_config",
    "normalise_inputs",
]

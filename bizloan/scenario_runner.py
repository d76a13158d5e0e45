from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from bizloan.analytics.config_schema import schema_frame
from bizloan.analytics.evaluate_scenario import evaluate_scenario
from bizloan.analytics.export_helpers import cashflow_frame, export_workbook
from bizloan.analytics.scenario_loader import ScenarioConfigError
from bizloan.analytics.schema_guard import ConfigValidationError
from bizloan.contracts import ScenarioResult

logger = logging.getLogger("bizloan.scenario_runner")


def _fmt_money(v: float) -> str:
    return f"{v:,.0f}"


def print_summary(result: ScenarioResult) -> None:
    m = result.metrics
    v = result.verdict
    print(f"\n===== FEASIBILITY: {result.scenario_name} =====")
    print(f"Total CAPEX:        {_fmt_money(result.total_capex)}")
    print(f"Loan (capped):      {_fmt_money(result.capped_principal)}")
    print(f"Monthly OPEX:       {_fmt_money(result.total_opex)}")
    print(f"Initial cash flow:  {_fmt_money(result.projection.initial_cashflow)}")
    print(f"Level payment:      {_fmt_money(result.loan_summary.level_payment)}")
    print(f"NPV ({result.inputs.discount_rate_pct:.1f}%/yr): {_fmt_money(m.npv)}")
    if m.irr_defined:
        print(f"IRR:                {m.irr_monthly * 100:.3f}%/month  {m.irr_annual * 100:.2f}%/year")
    else:
        print("IRR:                indeterminate")
    if m.payback_defined:
        print(f"Payback:            month {m.payback_months}")
    else:
        print("Payback:            beyond horizon")
    print(f"DSCR average:       {m.dscr_average:.2f}x")
    marks = "  ".join(f"{name}={'Y' if ok else 'N'}" for name, ok in v.criteria.items())
    print(f"Criteria:           {marks}")
    print(f"Verdict:            {v.label} ({v.score}/4)")
    for flag in result.flags.warnings():
        print(f"WARNING: {flag}")
    print()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="bizloan_scenario_runner",
        description="Small-business financing feasibility: loan schedule, cash flow, NPV/IRR/payback/DSCR and verdict.",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Scenario file (YAML or JSON).",
    )
    parser.add_argument(
        "--outputs-dir",
        default="outputs",
        type=str,
        help="Directory for the cash flow CSV.",
    )
    parser.add_argument(
        "--excel",
        default=None,
        type=str,
        help="Optional path of the five-sheet Excel report.",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging.")
    parser.add_argument(
        "--list-fields",
        action="store_true",
        help="Print the recognised scenario fields and exit.",
    )
    args = parser.parse_args(argv)

    if args.list_fields:
        print(schema_frame().to_string(index=False))
        return 0
    if not args.config:
        parser.error("--config is required")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        result = evaluate_scenario(args.config)
    except (FileNotFoundError, ScenarioConfigError, ConfigValidationError) as exc:
        logger.error("%s", exc)
        return 2

    print_summary(result)

    outputs_dir = Path(args.outputs_dir)
    outputs_dir.mkdir(parents=True, exist_ok=True)
    csv_path = outputs_dir / f"{result.scenario_name}_cashflow.csv"
    cashflow_frame(result).to_csv(csv_path, index=False)
    print(f"Cash flow projection exported: {csv_path}")

    if args.excel:
        path = export_workbook(result, args.excel)
        print(f"Workbook exported: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

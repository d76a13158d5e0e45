from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Dict, Optional, Union

import pandas as pd
from openpyxl.formatting.rule import CellIsRule
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from bizloan.contracts import ScenarioResult

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

KPI_SHEET = "KPI Summary"
CAPEX_SHEET = "CAPEX"
OPEX_SHEET = "OPEX"
LOAN_SHEET = "Loan Schedule"
CASHFLOW_SHEET = "Cashflow Projection"


# =====================================================================
# DataFrame builders (unrounded values; rounding is a display concern)
# =====================================================================


def kpi_frame(result: ScenarioResult) -> pd.DataFrame:
    """Two-column metric/value table for the KPI sheet."""
    m = result.metrics
    v = result.verdict
    rows = [
        ("Scenario", result.scenario_name),
        ("Total CAPEX", result.total_capex),
        ("Loan principal (capped)", result.capped_principal),
        ("Monthly OPEX (capped)", result.total_opex),
        ("Monthly depreciation", result.monthly_depreciation),
        ("Initial cash flow", result.projection.initial_cashflow),
        ("Level loan payment", result.loan_summary.level_payment),
        ("Total interest", result.loan_summary.total_interest),
        ("Discount rate (annual %)", result.inputs.discount_rate_pct),
        ("NPV", m.npv),
        ("IRR (monthly)", m.irr_monthly if m.irr_defined else "indeterminate"),
        ("IRR (annual)", m.irr_annual if m.irr_defined else "indeterminate"),
        ("Payback (months)", m.payback_months if m.payback_defined else "beyond horizon"),
        ("DSCR average", m.dscr_average),
        ("NPV >= 0", v.npv_ok),
        ("IRR >= discount rate", v.irr_ok),
        ("Payback <= 36 months", v.payback_ok),
        ("DSCR >= 1.2", v.dscr_ok),
        ("Score", v.score),
        ("Verdict", v.label),
    ]
    for flag, hit in asdict(result.flags).items():
        rows.append((flag, hit))
    return pd.DataFrame(rows, columns=["metric", "value"])


def capex_frame(result: ScenarioResult) -> pd.DataFrame:
    records = []
    for line in result.inputs.capex:
        life = line.life_years
        records.append(
            {
                "name": line.name,
                "value": line.value,
                "life_years": life,
                "monthly_depreciation": line.value / (life * 12.0) if life > 0 else 0.0,
            }
        )
    return pd.DataFrame(records, columns=["name", "value", "life_years", "monthly_depreciation"])


def opex_frame(result: ScenarioResult) -> pd.DataFrame:
    records = [{"name": line.name, "monthly": line.monthly} for line in result.inputs.opex]
    return pd.DataFrame(records, columns=["name", "monthly"])


def schedule_frame(result: ScenarioResult) -> pd.DataFrame:
    columns = ["month", "principal", "interest", "payment", "balance"]
    return pd.DataFrame([asdict(r) for r in result.schedule], columns=columns)


def cashflow_frame(result: ScenarioResult) -> pd.DataFrame:
    """Monthly projection with month 0 (initial cash flow) and a cumulative column."""
    rows = [asdict(r) for r in result.projection.rows]
    df = pd.DataFrame(rows)
    month0 = pd.DataFrame([{"month": 0, "net_cashflow": result.projection.initial_cashflow}])
    if not df.empty:
        df = pd.concat([month0, df], ignore_index=True)[list(df.columns)]
    else:
        df = month0
    df["cumulative_net_cashflow"] = df["net_cashflow"].cumsum()
    return df


def build_frames(result: ScenarioResult) -> Dict[str, pd.DataFrame]:
    """Sheet name -> DataFrame for the five report sheets, in workbook order."""
    return {
        KPI_SHEET: kpi_frame(result),
        CAPEX_SHEET: capex_frame(result),
        OPEX_SHEET: opex_frame(result),
        LOAN_SHEET: schedule_frame(result),
        CASHFLOW_SHEET: cashflow_frame(result),
    }


# =====================================================================
# Excel export
# =====================================================================


class ExcelExporter:
    """Helper for writing a feasibility result to an Excel workbook.

    The ExcelWriter is created lazily so an exporter that never writes does
    not leave an empty file behind.
    """

    def __init__(self, output_path: PathLike) -> None:
        self.output_path = Path(output_path)
        self._writer: Optional[pd.ExcelWriter] = None

    def _ensure_writer(self) -> pd.ExcelWriter:
        if self._writer is None:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            self._writer = pd.ExcelWriter(self.output_path, engine="openpyxl")
        return self._writer

    def save(self) -> None:
        """Persist the workbook to disk. Safe to call more than once."""
        if self._writer is not None:
            self._writer.close()
            self._writer = None
            logger.info("ExcelExporter: wrote workbook to %s", self.output_path)

    def add_dataframe_sheet(
        self,
        sheet_name: str,
        df: pd.DataFrame,
        freeze_panes: Optional[str] = "A2",
        format_headers: bool = True,
        auto_filter: bool = True,
    ) -> None:
        """Write a DataFrame to a sheet with light formatting."""
        writer = self._ensure_writer()
        df.to_excel(writer, sheet_name=sheet_name, index=False)
        ws = writer.sheets[sheet_name]

        if format_headers:
            for cell in ws[1]:
                cell.font = Font(bold=True)
        if auto_filter and not df.empty:
            ws.auto_filter.ref = ws.dimensions
        if freeze_panes:
            ws.freeze_panes = freeze_panes

    def highlight_negative(self, sheet_name: str, column: str, df: pd.DataFrame) -> None:
        """Red fill on negative values of one column."""
        if self._writer is None or column not in df.columns or df.empty:
            return
        ws = self._writer.sheets[sheet_name]
        letter = get_column_letter(df.columns.get_loc(column) + 1)
        cell_range = f"{letter}2:{letter}{len(df) + 1}"
        rule = CellIsRule(
            operator="lessThan",
            formula=["0"],
            fill=PatternFill(start_color="FFF4CCCC", end_color="FFF4CCCC", fill_type="solid"),
        )
        ws.conditional_formatting.add(cell_range, rule)

    def autofit_all(self) -> None:
        """Column widths from the longest rendered value in each column."""
        if self._writer is None:
            return
        for ws in self._writer.book.worksheets:
            for column_cells in ws.columns:
                max_length = max(
                    (len(str(cell.value)) for cell in column_cells if cell.value is not None),
                    default=0,
                )
                col_letter = get_column_letter(column_cells[0].column)
                ws.column_dimensions[col_letter].width = max_length + 2

    def export_result(self, result: ScenarioResult) -> Path:
        """Write the five report sheets and save."""
        logger.info("ExcelExporter: exporting scenario '%s' to %s", result.scenario_name, self.output_path)
        frames = build_frames(result)
        for sheet_name, df in frames.items():
            self.add_dataframe_sheet(sheet_name, df)

        self.highlight_negative(CASHFLOW_SHEET, "net_cashflow", frames[CASHFLOW_SHEET])
        self.highlight_negative(CASHFLOW_SHEET, "cumulative_net_cashflow", frames[CASHFLOW_SHEET])
        self.autofit_all()
        self.save()
        return self.output_path


def export_workbook(result: ScenarioResult, output_path: PathLike) -> Path:
    """One-shot helper: write ``result`` to ``output_path``."""
    return ExcelExporter(output_path).export_result(result)


__all__ = [
    "KPI_SHEET",
    "CAPEX_SHEET",
    "OPEX_SHEET",
    "LOAN_SHEET",
    "CASHFLOW_SHEET",
    "kpi_frame",
    "capex_frame",
    "opex_frame",
    "schedule_frame",
    "cashflow_frame",
    "build_frames",
    "ExcelExporter",
    "export_workbook",
]

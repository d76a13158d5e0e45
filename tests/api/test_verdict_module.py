"""Scoring rule of bizloan.finance.verdict."""

import math

import pytest

from bizloan.contracts import Metrics
from bizloan.finance.verdict import evaluate, evaluate_metrics, label_for_score


def test_all_four_criteria_is_feasible():
    v = evaluate(npv=1.0, irr_annual=0.20, payback_months=12, dscr_avg=1.5, annual_discount_rate_pct=12.0)
    assert v.criteria == {"npv": True, "irr": True, "payback": True, "dscr": True}
    assert v.score == 4
    assert v.label == "Feasible"


def test_three_criteria_is_marginal():
    v = evaluate(1.0, 0.20, 12, 1.0, 12.0)
    assert v.score == 3
    assert v.label == "Marginally Feasible"


def test_two_criteria_is_marginal():
    v = evaluate(1.0, 0.20, None, 1.0, 12.0)
    assert (v.npv_ok, v.irr_ok, v.payback_ok, v.dscr_ok) == (True, True, False, False)
    assert v.label == "Marginally Feasible"


def test_one_criterion_is_not_feasible():
    v = evaluate(-5.0, math.nan, 40, 1.3, 12.0)
    assert v.score == 1
    assert v.dscr_ok
    assert v.label == "Not Feasible"


def test_zero_criteria_is_not_feasible():
    v = evaluate(-5.0, -0.1, None, 0.3, 12.0)
    assert v.score == 0
    assert v.label == "Not Feasible"


@pytest.mark.parametrize(
    "kwargs, field, expected",
    [
        ({"payback_months": 36}, "payback_ok", True),
        ({"payback_months": 37}, "payback_ok", False),
        ({"payback_months": 0}, "payback_ok", True),
        ({"dscr_avg": 1.2}, "dscr_ok", True),
        ({"dscr_avg": 1.1999}, "dscr_ok", False),
        ({"irr_annual": 0.12}, "irr_ok", True),
        ({"irr_annual": 0.1199}, "irr_ok", False),
        ({"irr_annual": math.nan}, "irr_ok", False),
        ({"npv": 0.0}, "npv_ok", True),
        ({"npv": -0.01}, "npv_ok", False),
    ],
)
def test_criteria_boundaries(kwargs, field, expected):
    base = dict(npv=1.0, irr_annual=0.5, payback_months=10, dscr_avg=2.0, annual_discount_rate_pct=12.0)
    base.update(kwargs)
    assert getattr(evaluate(**base), field) is expected


def test_label_for_score_table():
    assert [label_for_score(s) for s in range(5)] == [
        "Not Feasible",
        "Not Feasible",
        "Marginally Feasible",
        "Marginally Feasible",
        "Feasible",
    ]


def test_evaluate_metrics_reads_metrics_bundle():
    m = Metrics(npv=10.0, irr_monthly=0.02, irr_annual=1.02 ** 12 - 1, payback_months=5, dscr_average=3.0)
    assert evaluate_metrics(m, 12.0).label == "Feasible"

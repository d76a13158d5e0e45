"""
Tests for bizloan.finance.amortization:

- zero-rate straight-line amortization
- annuity payment on a textbook case
- interest-only and full-capitalization grace periods
- balance invariants (non-increasing after grace, never negative)
"""

import math

import pytest

from bizloan.finance.amortization import (
    annuity_payment,
    monthly_rate,
    schedule,
    summarize_schedule,
)


def _assert_balance_invariants(rows, grace):
    balances = [r.balance for r in rows]
    assert all(b >= 0.0 for b in balances)
    after_grace = balances[grace:]
    for prev, cur in zip(after_grace, after_grace[1:]):
        assert cur <= prev + 1e-9


def test_zero_rate_is_straight_line_and_ends_at_zero():
    rows = schedule(1200.0, 0.0, 12)

    assert len(rows) == 12
    assert [r.month for r in rows] == list(range(1, 13))
    for r in rows:
        assert r.principal == 100.0
        assert r.interest == 0.0
        assert r.payment == 100.0
    assert rows[-1].balance == 0.0


def test_annuity_payment_textbook_case():
    # 12% nominal per year -> 1% per month
    assert monthly_rate(12.0) == pytest.approx(0.01)

    rows = schedule(1200.0, 12.0, 12)

    assert rows[0].payment == pytest.approx(106.62, abs=0.01)
    assert rows[0].interest == pytest.approx(12.0)
    assert rows[0].principal == pytest.approx(106.62 - 12.0, abs=0.01)
    assert rows[-1].balance == pytest.approx(0.0, abs=1e-6)
    assert annuity_payment(1200.0, 0.01, 12) == pytest.approx(rows[0].payment)


def test_annuity_payment_degenerate_periods():
    assert annuity_payment(1000.0, 0.01, 0) == 0.0
    assert annuity_payment(1000.0, 0.0, 4) == 250.0


def test_interest_only_grace_keeps_balance_and_pays_interest():
    rows = schedule(10_000.0, 12.0, 12, grace_months=3, grace_mode="interest-only")

    assert len(rows) == 12
    for r in rows[:3]:
        assert r.principal == 0.0
        assert r.interest == pytest.approx(100.0)
        assert r.payment == pytest.approx(100.0)
        assert r.balance == 10_000.0

    # Level payment over the remaining 9 months on the untouched balance
    assert rows[3].payment == pytest.approx(annuity_payment(10_000.0, 0.01, 9))
    assert rows[-1].balance == pytest.approx(0.0, abs=1e-6)
    _assert_balance_invariants(rows, grace=3)


def test_full_capitalization_grows_balance_during_grace():
    principal = 10_000.0
    rows = schedule(principal, 12.0, 12, grace_months=3, grace_mode="full-capitalization")

    for r in rows[:3]:
        assert r.payment == 0.0
        assert r.principal == 0.0
    assert rows[2].balance == pytest.approx(principal * 1.01 ** 3)
    assert rows[3].payment == pytest.approx(annuity_payment(principal * 1.01 ** 3, 0.01, 9))
    assert rows[-1].balance == pytest.approx(0.0, abs=1e-6)
    _assert_balance_invariants(rows, grace=3)

    summary = summarize_schedule(rows, principal)
    assert summary.capitalized_interest == pytest.approx(principal * (1.01 ** 3 - 1.0))
    assert summary.level_payment == pytest.approx(rows[3].payment)


@pytest.mark.parametrize(
    "principal, rate, tenor, grace, mode",
    [
        (150_000_000.0, 11.0, 36, 3, "interest-only"),
        (150_000_000.0, 11.0, 36, 3, "full-capitalization"),
        (3_000_000_000.0, 24.0, 120, 12, "full-capitalization"),
        (5_000.0, 0.0, 7, 2, "interest-only"),
        (1.0, 99.0, 1, 0, "interest-only"),
    ],
)
def test_balance_invariants_hold(principal, rate, tenor, grace, mode):
    rows = schedule(principal, rate, tenor, grace, mode)
    assert len(rows) == tenor
    _assert_balance_invariants(rows, grace)
    assert rows[-1].balance == pytest.approx(0.0, abs=principal * 1e-9)


def test_non_positive_months_give_empty_schedule():
    assert schedule(1000.0, 10.0, 0) == []
    assert schedule(1000.0, 10.0, -3) == []


def test_grace_longer_than_tenor_is_all_grace():
    rows = schedule(1000.0, 12.0, 3, grace_months=5)

    assert len(rows) == 3
    assert all(r.principal == 0.0 for r in rows)
    assert all(r.balance == 1000.0 for r in rows)


def test_unknown_grace_mode_falls_back_to_interest_only(caplog):
    with caplog.at_level("WARNING"):
        rows = schedule(1000.0, 12.0, 4, grace_months=2, grace_mode="balloon")

    assert rows[0].payment == pytest.approx(10.0)
    assert rows[1].balance == 1000.0
    assert "Unknown grace mode" in caplog.text


def test_alternative_grace_mode_spelling_is_accepted():
    rows = schedule(1000.0, 12.0, 4, grace_months=1, grace_mode="Full_Capitalization")
    assert rows[0].payment == 0.0
    assert rows[0].balance == pytest.approx(1010.0)


def test_non_finite_principal_is_treated_as_zero():
    rows = schedule(math.nan, 10.0, 6)
    assert len(rows) == 6
    assert all(r.payment == 0.0 and r.balance == 0.0 for r in rows)

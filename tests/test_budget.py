import math

import pytest

from grant_ledger.budget import (
    BudgetStatus,
    LineStatus,
    category_budget_lines,
    classify_budget,
    classify_line,
    portfolio_totals,
    summarize_funder,
    summarize_funders,
)
from grant_ledger.models import Funder
from grant_ledger.records import build_record


def _rec(amount: float, funder: str | None, *, category: str = "Operations", year: int = 2025):
    return build_record(
        name="x",
        amount=amount,
        pay_date=f"{year}-02-01",
        main_category=category,
        funder=funder,
    )


# ---- Funder status -----------------------------------------------------------


@pytest.mark.parametrize(
    "approved, spent, expected",
    [
        (100_000, 75_000, BudgetStatus.ON_TRACK),
        (100_000, 75_000.1, BudgetStatus.MONITOR),
        (1.0, 0.750001, BudgetStatus.MONITOR),
        (100.0, 100.01, BudgetStatus.OVER_BUDGET),
        (100.0, 100.0, BudgetStatus.MONITOR),
        (100.0, 0.0, BudgetStatus.UNUSED),
        (0.0, 0.0, BudgetStatus.UNUSED),
        (0.0, 5.0, BudgetStatus.OVER_BUDGET),
        (100.0, 1.0, BudgetStatus.ON_TRACK),
    ],
)
def test_classify_budget(approved: float, spent: float, expected: BudgetStatus):
    assert classify_budget(approved, spent) is expected


def test_status_labels():
    assert [s.value for s in BudgetStatus] == ["Over Budget", "Monitor", "On Track", "No Spending"]


def test_summary_derives_remaining_and_percent():
    funder = Funder(id="bcbs", name="Blue Cross Blue Shield", approved=25_000)
    records = [_rec(5_000, funder.name), _rec(1_250, funder.name), _rec(999, "Other")]
    summary = summarize_funder(funder, records)
    assert summary.spent == 6_250
    assert summary.remaining == 18_750
    assert summary.percent_used == pytest.approx(25.0)
    assert summary.transaction_count == 2
    assert summary.status is BudgetStatus.ON_TRACK


def test_zero_approved_summary_never_divides():
    summary = summarize_funder(Funder(id="z", name="Zero", approved=0), [])
    assert summary.percent_used == 0.0
    assert not math.isnan(summary.percent_used)
    assert summary.status is BudgetStatus.UNUSED


def test_summaries_follow_configuration_order_and_year():
    funders = [Funder(id="b", name="B", approved=10), Funder(id="a", name="A", approved=10)]
    records = [_rec(4, "A", year=2024), _rec(9, "A")]
    summaries = summarize_funders(funders, records, year=2025)
    assert [s.name for s in summaries] == ["B", "A"]
    assert summaries[1].spent == 9
    assert summaries[1].status is BudgetStatus.MONITOR


def test_portfolio_totals_include_unattributed_spending():
    funders = [Funder(id="a", name="A", approved=100), Funder(id="b", name="B", approved=50)]
    records = [_rec(30, "A"), _rec(20, None)]
    totals = portfolio_totals(funders, records)
    assert (totals.approved, totals.spent, totals.remaining) == (150, 50, 100)
    assert totals.transaction_count == 2
    assert totals.percent_used == pytest.approx(100 / 3)


# ---- Category budget lines ---------------------------------------------------


@pytest.mark.parametrize(
    "percent, expected",
    [
        (0.0, LineStatus.ON_TRACK),
        (75.0, LineStatus.ON_TRACK),
        (75.5, LineStatus.MONITOR),
        (90.0, LineStatus.MONITOR),
        (90.1, LineStatus.CRITICAL),
    ],
)
def test_classify_line(percent: float, expected: LineStatus):
    assert classify_line(percent) is expected


def test_category_budget_lines_keep_budget_order():
    budgets = {"Gross Salaries": 1000.0, "Travel": 100.0, "Other Charges": 0.0}
    records = [
        _rec(950, "F", category="Gross Salaries"),
        _rec(80, "F", category="Travel"),
        _rec(5, "F", category="Operations"),
    ]
    lines = category_budget_lines(records, budgets)
    assert [line.category for line in lines] == ["Gross Salaries", "Travel", "Other Charges"]
    salaries, travel, other = lines
    assert salaries.status is LineStatus.CRITICAL
    assert travel.status is LineStatus.MONITOR
    assert travel.remaining == 20
    assert other.spent == 0
    assert other.status is LineStatus.ON_TRACK

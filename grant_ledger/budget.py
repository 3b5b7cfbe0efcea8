"""Budget health classification for funders and category budget lines.

Funder status
-------------
:func:`classify_budget` checks, in this order:

1. ``Over Budget``: ``approved - spent < 0``.
2. ``Monitor``: ``approved > 0`` and ``spent / approved > 0.75``.
3. ``On Track``: ``approved > 0``, ratio at most ``0.75`` and ``spent > 0``.
4. ``No Spending``: everything else (nothing spent).

The ratio is only computed once ``approved > 0`` is known, so a funder with
no approved budget is either over budget (any spending) or unused.

Category lines
--------------
Line budgets (for example a state appropriation's attachment lines) use a
separate three-level scale: ``Critical`` above 90 % used, ``Monitor`` above
75 %, otherwise ``On Track``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum

from .aggregation import funder_spend, funder_transaction_count, select_records, total_amount
from .models import Funder, Records

MONITOR_RATIO = 0.75
CRITICAL_LINE_PERCENT = 90.0
MONITOR_LINE_PERCENT = 75.0


class BudgetStatus(StrEnum):
    OVER_BUDGET = "Over Budget"
    MONITOR = "Monitor"
    ON_TRACK = "On Track"
    UNUSED = "No Spending"


class LineStatus(StrEnum):
    CRITICAL = "Critical"
    MONITOR = "Monitor"
    ON_TRACK = "On Track"


def spend_ratio(approved: float, spent: float) -> float | None:
    """Return ``spent / approved``, or ``None`` when nothing is approved."""

    return spent / approved if approved > 0 else None


def percent_used(approved: float, spent: float) -> float:
    ratio = spend_ratio(approved, spent)
    return ratio * 100 if ratio is not None else 0.0


def classify_budget(approved: float, spent: float) -> BudgetStatus:
    """Classify a funder's budget health. Never divides by zero."""

    if approved - spent < 0:
        return BudgetStatus.OVER_BUDGET
    ratio = spend_ratio(approved, spent)
    if ratio is not None and ratio > MONITOR_RATIO:
        return BudgetStatus.MONITOR
    if ratio is not None and spent > 0:
        return BudgetStatus.ON_TRACK
    return BudgetStatus.UNUSED


@dataclass(frozen=True, slots=True)
class FunderSummary:
    funder: Funder
    spent: float
    transaction_count: int

    @property
    def name(self) -> str:
        return self.funder.name

    @property
    def approved(self) -> float:
        return self.funder.approved

    @property
    def remaining(self) -> float:
        return self.funder.approved - self.spent

    @property
    def percent_used(self) -> float:
        return percent_used(self.funder.approved, self.spent)

    @property
    def status(self) -> BudgetStatus:
        return classify_budget(self.funder.approved, self.spent)


def summarize_funder(funder: Funder, records: Records, *, year: int | None = None) -> FunderSummary:
    return FunderSummary(
        funder=funder,
        spent=funder_spend(records, funder.name, year=year),
        transaction_count=funder_transaction_count(records, funder.name, year=year),
    )


def summarize_funders(
    funders: Iterable[Funder], records: Records, *, year: int | None = None
) -> list[FunderSummary]:
    """Summaries in configuration order."""

    return [summarize_funder(f, records, year=year) for f in funders]


@dataclass(frozen=True, slots=True)
class PortfolioTotals:
    approved: float
    spent: float
    transaction_count: int

    @property
    def remaining(self) -> float:
        return self.approved - self.spent

    @property
    def percent_used(self) -> float:
        return percent_used(self.approved, self.spent)


def portfolio_totals(
    funders: Iterable[Funder], records: Records, *, year: int | None = None
) -> PortfolioTotals:
    """Totals across every funder.

    ``spent`` covers all selected records, including ones not attributed to
    any funder, so unattributed spending still reduces what remains.
    """

    selected = select_records(records, year=year)
    return PortfolioTotals(
        approved=sum((f.approved for f in funders), 0.0),
        spent=total_amount(selected),
        transaction_count=len(selected),
    )


# ---------------------------------------------------------------------------
# Category budget lines
# ---------------------------------------------------------------------------


def classify_line(percent: float) -> LineStatus:
    if percent > CRITICAL_LINE_PERCENT:
        return LineStatus.CRITICAL
    if percent > MONITOR_LINE_PERCENT:
        return LineStatus.MONITOR
    return LineStatus.ON_TRACK


@dataclass(frozen=True, slots=True)
class CategoryBudgetLine:
    category: str
    budget: float
    spent: float
    transaction_count: int

    @property
    def remaining(self) -> float:
        return self.budget - self.spent

    @property
    def percent_used(self) -> float:
        return percent_used(self.budget, self.spent)

    @property
    def status(self) -> LineStatus:
        return classify_line(self.percent_used)


def category_budget_lines(
    records: Records, budgets: Mapping[str, float]
) -> list[CategoryBudgetLine]:
    """Spending against each line of ``budgets`` (in the mapping's order).

    ``records`` should already be narrowed to the funder and period being
    reported; categories without a budget line are ignored.
    """

    lines: list[CategoryBudgetLine] = []
    for category, budget in budgets.items():
        matching = [r for r in records if r.main_category == category]
        lines.append(
            CategoryBudgetLine(
                category=category,
                budget=float(budget),
                spent=total_amount(matching),
                transaction_count=len(matching),
            )
        )
    return lines


__all__ = [
    "MONITOR_RATIO",
    "BudgetStatus",
    "CategoryBudgetLine",
    "FunderSummary",
    "LineStatus",
    "PortfolioTotals",
    "category_budget_lines",
    "classify_budget",
    "classify_line",
    "percent_used",
    "portfolio_totals",
    "spend_ratio",
    "summarize_funder",
    "summarize_funders",
]

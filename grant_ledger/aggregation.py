"""Pure aggregation functions over a ledger record collection.

Every function takes the caller's record list and returns new derived data;
nothing here mutates its input or keeps state between calls, so callers may
recompute after every edit.

Most functions accept two optional keyword filters applied before grouping:
``year`` (exact match on the stored year) and ``funder`` (exact,
case-sensitive match on the funder name).

Amounts are summed as floats without rounding. A record whose ``amount`` is
missing (or not a finite number) contributes ``0``.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Literal, NamedTuple, TypeAlias, TypeVar

from .config import DEFAULT_FLUCTUATION_THRESHOLD
from .models import QUARTERS, LedgerRecord, Quarter, Records
from .records import month_of

MONTH_NAMES: tuple[str, ...] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)

UNKNOWN_VENDOR = "Unknown Vendor"
UNSPECIFIED_ITEM = "Unspecified Item"

DatePreset: TypeAlias = Literal["this_month", "last_month", "fiscal_year"]


# ---------------------------------------------------------------------------
# Result shapes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MonthBucket:
    index: int  # 0-based: 0 = January
    name: str
    total: float
    records: tuple[LedgerRecord, ...]

    @property
    def count(self) -> int:
        return len(self.records)


@dataclass(frozen=True, slots=True)
class QuarterBucket:
    name: Quarter
    total: float
    records: tuple[LedgerRecord, ...]

    @property
    def count(self) -> int:
        return len(self.records)


class CategoryTotal(NamedTuple):
    name: str
    total: float
    count: int


class RankedTotal(NamedTuple):
    label: str
    total: float


@dataclass(frozen=True, slots=True)
class PeriodDelta:
    """Change of one nonzero period against the latest prior nonzero period.

    The first nonzero period has no baseline: ``has_baseline`` is ``False``
    and ``previous``/``change``/``percent_change`` are ``None``.
    """

    name: str
    total: float
    previous: str | None
    previous_total: float | None
    change: float | None
    percent_change: float | None
    flagged: bool

    @property
    def has_baseline(self) -> bool:
        return self.previous is not None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def amount_of(record: LedgerRecord) -> float:
    """Return the record's amount, or ``0.0`` when missing or not finite."""

    value = record.amount
    if value is None:
        return 0.0
    try:
        f = float(value)
    except (TypeError, ValueError):
        return 0.0
    return f if math.isfinite(f) else 0.0


def total_amount(records: Iterable[LedgerRecord]) -> float:
    return sum((amount_of(r) for r in records), 0.0)


def select_records(
    records: Records, *, year: int | None = None, funder: str | None = None
) -> list[LedgerRecord]:
    """Apply the shared ``year``/``funder`` filters."""

    return [
        r
        for r in records
        if (year is None or r.year == year) and (funder is None or r.funder == funder)
    ]


def _month_index(pay_date: str) -> int:
    # Malformed months land in December, mirroring the Q4 quarter fallback.
    month = month_of(pay_date)
    return (month if month is not None else 12) - 1


K = TypeVar("K")


def _sum_by(
    records: Iterable[LedgerRecord], key: Callable[[LedgerRecord], K]
) -> dict[K, list[LedgerRecord]]:
    groups: dict[K, list[LedgerRecord]] = {}
    for r in records:
        groups.setdefault(key(r), []).append(r)
    return groups


def _ranked(groups: dict[str, list[LedgerRecord]], limit: int | None) -> list[RankedTotal]:
    ranked = sorted(
        (RankedTotal(label, total_amount(rs)) for label, rs in groups.items()),
        key=lambda t: (-t.total, t.label),
    )
    return ranked if limit is None else ranked[:limit]


def _vendor_label(r: LedgerRecord) -> str:
    return r.vendor or r.description or UNKNOWN_VENDOR


def _item_label(r: LedgerRecord) -> str:
    return r.name or r.description or UNSPECIFIED_ITEM


# ---------------------------------------------------------------------------
# Time buckets
# ---------------------------------------------------------------------------


def totals_by_month(
    records: Records, *, year: int | None = None, funder: str | None = None
) -> list[MonthBucket]:
    """Return twelve buckets (January first), including empty months.

    The month is read from ``pay_date``; a malformed month counts toward
    December, so the twelve totals always add up to the flat total.
    """

    selected = select_records(records, year=year, funder=funder)
    by_month = _sum_by(selected, lambda r: _month_index(r.pay_date))
    buckets: list[MonthBucket] = []
    for index, name in enumerate(MONTH_NAMES):
        month_records = tuple(by_month.get(index, ()))
        buckets.append(MonthBucket(index, name, total_amount(month_records), month_records))
    return buckets


def totals_by_quarter(
    records: Records, *, year: int | None = None, funder: str | None = None
) -> list[QuarterBucket]:
    """Return four buckets keyed by the stored ``quarter`` field."""

    selected = select_records(records, year=year, funder=funder)
    by_quarter = _sum_by(selected, lambda r: r.quarter)
    return [
        QuarterBucket(q, total_amount(by_quarter.get(q, ())), tuple(by_quarter.get(q, ())))
        for q in QUARTERS
    ]


# ---------------------------------------------------------------------------
# Dimension slices
# ---------------------------------------------------------------------------


def _category_totals(
    groups: dict[str, list[LedgerRecord]], limit: int | None
) -> list[CategoryTotal]:
    totals = sorted(
        (CategoryTotal(name, total_amount(rs), len(rs)) for name, rs in groups.items()),
        key=lambda t: (-t.total, t.name),
    )
    return totals if limit is None else totals[:limit]


def totals_by_category(
    records: Records,
    *,
    limit: int | None = None,
    year: int | None = None,
    funder: str | None = None,
) -> list[CategoryTotal]:
    """Sum by main category, largest first; ``limit`` truncates for display."""

    selected = select_records(records, year=year, funder=funder)
    return _category_totals(_sum_by(selected, lambda r: r.main_category), limit)


def totals_by_subcategory(
    records: Records,
    *,
    limit: int | None = None,
    year: int | None = None,
    funder: str | None = None,
) -> list[CategoryTotal]:
    """Sum by sub-category, falling back to the main category when blank."""

    selected = select_records(records, year=year, funder=funder)
    return _category_totals(
        _sum_by(selected, lambda r: r.sub_category or r.main_category), limit
    )


def totals_by_vendor(
    records: Records,
    *,
    limit: int | None = None,
    year: int | None = None,
    funder: str | None = None,
) -> list[RankedTotal]:
    """Sum by vendor (then description, then ``"Unknown Vendor"``)."""

    selected = select_records(records, year=year, funder=funder)
    return _ranked(_sum_by(selected, _vendor_label), limit)


def totals_by_item(
    records: Records,
    *,
    limit: int | None = None,
    year: int | None = None,
    funder: str | None = None,
) -> list[RankedTotal]:
    """Sum by item name (then description, then ``"Unspecified Item"``)."""

    selected = select_records(records, year=year, funder=funder)
    return _ranked(_sum_by(selected, _item_label), limit)


def totals_by_funder(records: Records, *, year: int | None = None) -> dict[str, float]:
    """Sum per funder name; records without a funder are left out."""

    selected = select_records(records, year=year)
    return {
        name: total_amount(rs)
        for name, rs in _sum_by((r for r in selected if r.funder), lambda r: r.funder).items()
    }


def top_transactions(
    records: Records,
    n: int = 10,
    *,
    year: int | None = None,
    funder: str | None = None,
) -> list[LedgerRecord]:
    """Return the ``n`` largest records by amount, largest first."""

    selected = select_records(records, year=year, funder=funder)
    # sorted() is stable: equal amounts keep input order.
    return sorted(selected, key=amount_of, reverse=True)[: max(n, 0)]


# ---------------------------------------------------------------------------
# Period-over-period change
# ---------------------------------------------------------------------------


def period_deltas(
    buckets: Sequence[MonthBucket | QuarterBucket],
    *,
    threshold_pct: float = DEFAULT_FLUCTUATION_THRESHOLD,
) -> list[PeriodDelta]:
    """Compare each nonzero bucket with the most recent prior nonzero bucket.

    Zero buckets are skipped, both as rows and as baselines. A delta whose
    absolute percent change exceeds ``threshold_pct`` is flagged for review.
    """

    deltas: list[PeriodDelta] = []
    previous: MonthBucket | QuarterBucket | None = None
    for bucket in buckets:
        if bucket.total == 0:
            continue
        if previous is None:
            deltas.append(PeriodDelta(bucket.name, bucket.total, None, None, None, None, False))
        else:
            change = bucket.total - previous.total
            percent = change / previous.total * 100
            deltas.append(
                PeriodDelta(
                    name=bucket.name,
                    total=bucket.total,
                    previous=previous.name,
                    previous_total=previous.total,
                    change=change,
                    percent_change=percent,
                    flagged=abs(percent) > threshold_pct,
                )
            )
        previous = bucket
    return deltas


def month_over_month(
    records: Records,
    *,
    year: int | None = None,
    funder: str | None = None,
    threshold_pct: float = DEFAULT_FLUCTUATION_THRESHOLD,
) -> list[PeriodDelta]:
    return period_deltas(
        totals_by_month(records, year=year, funder=funder), threshold_pct=threshold_pct
    )


def quarter_over_quarter(
    records: Records,
    *,
    year: int | None = None,
    funder: str | None = None,
    threshold_pct: float = DEFAULT_FLUCTUATION_THRESHOLD,
) -> list[PeriodDelta]:
    return period_deltas(
        totals_by_quarter(records, year=year, funder=funder), threshold_pct=threshold_pct
    )


# ---------------------------------------------------------------------------
# Funder attribution
# ---------------------------------------------------------------------------


def funder_spend(records: Records, funder_name: str, *, year: int | None = None) -> float:
    """Sum of records whose ``funder`` equals ``funder_name`` exactly."""

    return total_amount(select_records(records, year=year, funder=funder_name))


def funder_transaction_count(
    records: Records, funder_name: str, *, year: int | None = None
) -> int:
    return len(select_records(records, year=year, funder=funder_name))


# ---------------------------------------------------------------------------
# Filters and date presets
# ---------------------------------------------------------------------------


def _contains(haystack: str | None, needle: str) -> bool:
    return needle.casefold() in (haystack or "").casefold()


def filter_records(
    records: Records,
    *,
    funder: str | None = None,
    category: str | None = None,
    search: str | None = None,
    start: str | None = None,
    end: str | None = None,
    quarter: Quarter | None = None,
    year: int | None = None,
) -> list[LedgerRecord]:
    """Return the records matching every given filter.

    ``funder`` and ``category`` are case-insensitive substring filters;
    ``search`` looks at the item name, description, vendor, reference number
    and id. ``start``/``end`` bound ``pay_date`` inclusively (ISO strings
    compare chronologically). Empty filters are ignored.
    """

    out: list[LedgerRecord] = []
    for r in records:
        if funder and not _contains(r.funder, funder):
            continue
        if category and not _contains(r.main_category, category):
            continue
        if search and not any(
            _contains(v, search)
            for v in (r.name, r.description, r.vendor, r.reference_number, r.id)
        ):
            continue
        if start and r.pay_date < start:
            continue
        if end and r.pay_date > end:
            continue
        if quarter and r.quarter != quarter:
            continue
        if year is not None and r.year != year:
            continue
        out.append(r)
    return out


def date_range_preset(preset: DatePreset, today: date | None = None) -> tuple[str, str]:
    """Return an inclusive ``(start, end)`` ISO date range for a named preset.

    ``fiscal_year`` runs July 1 through June 30 and contains ``today``.
    """

    t = today or date.today()
    if preset == "this_month":
        return t.replace(day=1).isoformat(), t.isoformat()
    if preset == "last_month":
        last_day = t.replace(day=1) - timedelta(days=1)
        return last_day.replace(day=1).isoformat(), last_day.isoformat()
    if preset == "fiscal_year":
        first_year = t.year if t.month >= 7 else t.year - 1
        return f"{first_year}-07-01", f"{first_year + 1}-06-30"
    raise ValueError(f"unknown date range preset: {preset!r}")


__all__ = [
    "MONTH_NAMES",
    "UNKNOWN_VENDOR",
    "UNSPECIFIED_ITEM",
    "CategoryTotal",
    "MonthBucket",
    "PeriodDelta",
    "QuarterBucket",
    "RankedTotal",
    "amount_of",
    "date_range_preset",
    "filter_records",
    "funder_spend",
    "funder_transaction_count",
    "month_over_month",
    "period_deltas",
    "quarter_over_quarter",
    "select_records",
    "top_transactions",
    "total_amount",
    "totals_by_category",
    "totals_by_funder",
    "totals_by_item",
    "totals_by_month",
    "totals_by_quarter",
    "totals_by_subcategory",
    "totals_by_vendor",
]

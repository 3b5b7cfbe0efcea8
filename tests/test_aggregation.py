import math
from datetime import date

import pytest

from grant_ledger.aggregation import (
    MONTH_NAMES,
    date_range_preset,
    filter_records,
    funder_spend,
    funder_transaction_count,
    month_over_month,
    period_deltas,
    quarter_over_quarter,
    top_transactions,
    total_amount,
    totals_by_category,
    totals_by_funder,
    totals_by_item,
    totals_by_month,
    totals_by_quarter,
    totals_by_subcategory,
    totals_by_vendor,
)
from grant_ledger.models import LedgerRecord
from grant_ledger.records import build_record

# ---- Helpers -----------------------------------------------------------------


def _rec(
    amount: float | None,
    pay_date: str,
    *,
    category: str = "Operations",
    sub: str | None = None,
    vendor: str = "",
    description: str = "",
    name: str = "",
    funder: str | None = None,
    reference: str = "",
) -> LedgerRecord:
    return build_record(
        name=name,
        amount=amount,
        pay_date=pay_date,
        main_category=category,
        sub_category=sub,
        vendor=vendor,
        description=description,
        reference_number=reference,
        funder=funder,
    )


def _ledger() -> list[LedgerRecord]:
    return [
        _rec(100.0, "2025-01-05", category="Travel", vendor="Delta", funder="A"),
        _rec(200.0, "2025-01-20", sub="Utilities", vendor="Entergy", funder="A"),
        _rec(300.0, "2025-03-11", category="Gross Salaries", funder="B"),
        _rec(0.1, "2025-03-12", vendor="Delta", funder="B"),
        _rec(0.2, "2025-07-01", description="Coffee", name="Beans"),
        _rec(None, "2025-08-09", vendor="Nobody"),
        _rec(50.0, "2024-12-31", vendor="Delta", funder="A"),
        _rec(25.0, "bad-date", funder="A"),
    ]


# ---- Totals ------------------------------------------------------------------


def test_category_month_and_flat_totals_agree():
    records = _ledger()
    flat = total_amount(records)
    by_category = sum(t.total for t in totals_by_category(records))
    by_month = sum(b.total for b in totals_by_month(records))
    by_quarter = sum(b.total for b in totals_by_quarter(records))
    assert round(by_category, 2) == round(flat, 2)
    assert round(by_month, 2) == round(flat, 2)
    assert round(by_quarter, 2) == round(flat, 2)
    assert math.isclose(flat, 675.3)


def test_months_always_has_twelve_buckets():
    buckets = totals_by_month([_rec(10.0, "2025-05-05")])
    assert [b.name for b in buckets] == list(MONTH_NAMES)
    assert [b.index for b in buckets] == list(range(12))
    assert [b.total for b in buckets] == [0, 0, 0, 0, 10.0, 0, 0, 0, 0, 0, 0, 0]
    assert buckets[4].count == 1


def test_malformed_month_counts_toward_december():
    buckets = totals_by_month([_rec(25.0, "bad-date")])
    assert buckets[11].total == 25.0


def test_year_and_funder_filters():
    records = _ledger()
    assert total_amount(records) > 0
    by_month_2025 = totals_by_month(records, year=2025)
    assert by_month_2025[11].total == 25.0  # only the bad-date record (default year)

    quarters = totals_by_quarter(records, funder="A")
    assert [q.name for q in quarters] == ["Q1", "Q2", "Q3", "Q4"]
    assert [q.total for q in quarters] == [300.0, 0.0, 0.0, 75.0]


def test_impossible_calendar_day_keeps_its_year():
    records = [_rec(40.0, "2024-02-30", funder="A")]
    assert totals_by_month(records, year=2024)[1].total == 40.0
    assert funder_spend(records, "A", year=2024) == 40.0


def test_missing_amount_contributes_zero():
    buckets = totals_by_month([_rec(None, "2025-02-02")])
    assert buckets[1].total == 0.0
    assert buckets[1].count == 1


def test_category_totals_are_sorted_and_counted():
    totals = totals_by_category(_ledger())
    assert totals[0].name == "Gross Salaries"
    assert totals[0].total == 300.0
    ops = next(t for t in totals if t.name == "Operations")
    assert ops.count == 6
    assert totals_by_category(_ledger(), limit=1) == totals[:1]


def test_subcategory_falls_back_to_main_category():
    labels = {t.name for t in totals_by_subcategory(_ledger())}
    assert "Utilities" in labels
    assert "Travel" in labels


def test_vendor_and_item_fallback_labels():
    vendors = dict(totals_by_vendor(_ledger()))
    assert vendors["Delta"] == pytest.approx(150.1)
    assert vendors["Coffee"] == pytest.approx(0.2)
    assert vendors["Unknown Vendor"] == pytest.approx(325.0)

    items = dict(totals_by_item(_ledger()))
    assert items["Beans"] == pytest.approx(0.2)
    assert "Unspecified Item" in items


def test_ranked_totals_limit_and_tie_order():
    records = [
        _rec(5.0, "2025-01-01", vendor="b"),
        _rec(5.0, "2025-01-01", vendor="a"),
        _rec(9.0, "2025-01-01", vendor="c"),
    ]
    assert [label for label, _ in totals_by_vendor(records)] == ["c", "a", "b"]
    assert len(totals_by_vendor(records, limit=2)) == 2


def test_top_transactions():
    top = top_transactions(_ledger(), 3)
    assert [r.amount for r in top] == [300.0, 200.0, 100.0]
    assert top_transactions(_ledger(), 0) == []


def test_funder_totals_and_exact_match():
    records = _ledger()
    assert totals_by_funder(records) == {"A": 375.0, "B": pytest.approx(300.1)}
    assert funder_spend(records, "A", year=2025) == 325.0
    assert funder_spend(records, "a") == 0.0
    assert funder_transaction_count(records, "B") == 2


# ---- Period deltas -----------------------------------------------------------


def test_month_over_month_skips_zero_months():
    records = [
        _rec(100.0, "2025-01-10"),
        _rec(110.0, "2025-03-10"),
        _rec(55.0, "2025-06-10"),
    ]
    deltas = month_over_month(records)
    assert [d.name for d in deltas] == ["Jan", "Mar", "Jun"]

    first, mar, jun = deltas
    assert not first.has_baseline
    assert first.percent_change is None
    assert not first.flagged

    assert mar.previous == "Jan"
    assert mar.change == pytest.approx(10.0)
    assert mar.percent_change == pytest.approx(10.0)
    assert not mar.flagged

    assert jun.previous == "Mar"
    assert jun.percent_change == pytest.approx(-50.0)
    assert jun.flagged


def test_threshold_is_exclusive():
    records = [_rec(100.0, "2025-01-10"), _rec(120.0, "2025-04-10")]
    (_, q2) = quarter_over_quarter(records)
    assert q2.percent_change == pytest.approx(20.0)
    assert not q2.flagged
    (_, q2_strict) = quarter_over_quarter(records, threshold_pct=19.9)
    assert q2_strict.flagged


def test_period_deltas_on_empty_buckets():
    assert period_deltas(totals_by_month([])) == []


# ---- Filters and presets -----------------------------------------------------


def test_filter_records_combines_filters():
    records = _ledger()
    assert len(filter_records(records, funder="a")) == 4
    assert len(filter_records(records, category="salar")) == 1
    assert len(filter_records(records, search="DELTA")) == 3
    in_range = filter_records(records, start="2025-01-01", end="2025-03-31")
    assert len(in_range) == 4
    assert filter_records(records, quarter="Q3", year=2025)[0].description == "Coffee"
    assert filter_records(records) == records


def test_filter_search_matches_id_and_reference():
    target = _rec(1.0, "2025-01-01", reference="INV-42")
    records = [target, _rec(2.0, "2025-01-01")]
    assert filter_records(records, search="inv-42") == [target]
    assert filter_records(records, search=target.id) == [target]


@pytest.mark.parametrize(
    "preset, today, expected",
    [
        ("this_month", date(2025, 3, 14), ("2025-03-01", "2025-03-14")),
        ("last_month", date(2025, 3, 14), ("2025-02-01", "2025-02-28")),
        ("last_month", date(2025, 1, 5), ("2024-12-01", "2024-12-31")),
        ("fiscal_year", date(2025, 10, 1), ("2025-07-01", "2026-06-30")),
        ("fiscal_year", date(2026, 2, 1), ("2025-07-01", "2026-06-30")),
    ],
)
def test_date_range_presets(preset, today, expected):
    assert date_range_preset(preset, today) == expected


def test_unknown_preset_raises():
    with pytest.raises(ValueError):
        date_range_preset("next_decade", date(2025, 1, 1))  # type: ignore[arg-type]

"""CSV serializers for the ledger and derived reports.

All functions return ``str`` CSV text; writing it anywhere is the caller's
job. Output depends only on the arguments: rows keep the caller's order
unless a function is explicitly asked to sort.

The ledger export wraps text fields in double quotes but does not escape
quotes or commas inside them, matching what the importer can read back.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date

from .aggregation import amount_of, select_records, totals_by_category, total_amount
from .budget import CategoryBudgetLine, FunderSummary, percent_used
from .models import Funder, LedgerRecord, Quarter, Records

LEDGER_HEADER = (
    "Date,Category,Subcategory,Vendor,Description,InvoiceNumber,"
    "Amount,Quarter,Year,ItemName,PaymentMethod"
)
IMPORT_TEMPLATE_HEADER = (
    "Date,Category,Subcategory,Vendor,Description,InvoiceNumber,Amount,ItemName"
)
IMPORT_TEMPLATE_EXAMPLE = (
    "2025-01-15,Operations,Facility rent,Landmark Realty,Monthly Office Lease,"
    "CHK-99821,3200.00,Main Office Rent"
)
FUNDER_SUMMARY_HEADER = "Funder,Approved Amount,Spent,Remaining,% Used,Status,Transactions"
CATEGORY_BUDGET_HEADER = "Budget Category,Annual Budget,Spent This Period,Remaining,% Used,Status"


def _q(value: object) -> str:
    return f'"{"" if value is None else value}"'


def _money(value: float) -> str:
    return f"{value:.2f}"


def _pct(value: float) -> str:
    return f"{value:.1f}%"


def _plain_amount(record: LedgerRecord) -> str:
    # repr() keeps full float precision and never uses a currency format.
    return repr(amount_of(record))


def _lines(rows: Iterable[str]) -> str:
    return "\n".join(rows) + "\n"


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


def ledger_row(record: LedgerRecord, *, include_funder: bool = False) -> str:
    cells = [
        _q(record.pay_date),
        _q(record.main_category),
        _q(record.sub_category or ""),
        _q(record.vendor),
        _q(record.description),
        _q(record.reference_number),
        _plain_amount(record),
        _q(record.quarter),
        str(record.year),
        _q(record.name),
        _q(record.payment_method),
    ]
    if include_funder:
        cells.append(_q(record.funder or ""))
    return ",".join(cells)


def export_ledger_csv(
    records: Records, *, sort_by_date: bool = False, include_funder: bool = False
) -> str:
    """Serialize records with the fixed ledger header.

    Rows follow input order; ``sort_by_date`` orders them by pay date, then
    id, for a guaranteed transaction order. ``include_funder`` appends a
    trailing ``Funder`` column, which the importer maps back onto
    :attr:`LedgerRecord.funder`.
    """

    rows: Sequence[LedgerRecord] = records
    if sort_by_date:
        rows = sorted(records, key=lambda r: (r.pay_date, r.id))
    header = f"{LEDGER_HEADER},Funder" if include_funder else LEDGER_HEADER
    return _lines([header, *(ledger_row(r, include_funder=include_funder) for r in rows)])


def import_template_csv() -> str:
    """Header plus one example row, ready to be filled in and imported."""

    return _lines([IMPORT_TEMPLATE_HEADER, IMPORT_TEMPLATE_EXAMPLE])


# ---------------------------------------------------------------------------
# Funder summaries
# ---------------------------------------------------------------------------


def export_funder_summary_csv(summaries: Sequence[FunderSummary]) -> str:
    """One row per funder plus a ``TOTAL`` row."""

    rows = [FUNDER_SUMMARY_HEADER]
    for s in summaries:
        rows.append(
            ",".join(
                (
                    _q(s.name),
                    _money(s.approved),
                    _money(s.spent),
                    _money(s.remaining),
                    _pct(s.percent_used),
                    s.status.value,
                    str(s.transaction_count),
                )
            )
        )
    approved = sum((s.approved for s in summaries), 0.0)
    spent = sum((s.spent for s in summaries), 0.0)
    rows.append(
        ",".join(
            (
                "TOTAL",
                _money(approved),
                _money(spent),
                _money(approved - spent),
                _pct(percent_used(approved, spent)),
                "",
                str(sum(s.transaction_count for s in summaries)),
            )
        )
    )
    return _lines(rows)


def export_funder_report_csv(
    records: Records,
    funder: Funder,
    *,
    quarter: Quarter | None = None,
    year: int | None = None,
    generated: date | None = None,
    organization: str = "Financial Report",
) -> str:
    """Period report for one funder: category table and detailed transactions.

    Records are narrowed to ``funder`` (exact name) and, when given, to
    ``quarter`` and ``year``.
    """

    selected = [
        r
        for r in select_records(records, year=year, funder=funder.name)
        if quarter is None or r.quarter == quarter
    ]
    period = " ".join(str(p) for p in (quarter, year) if p is not None) or "All periods"

    rows = [
        f"{organization} - {funder.name}",
        f"Period: {period}",
        f"Generated: {(generated or date.today()).isoformat()}",
        "",
        "Category,Transactions,Amount",
    ]
    for cat in totals_by_category(selected):
        rows.append(f"{_q(cat.name)},{cat.count},{_money(cat.total)}")
    rows.append(f"TOTAL,{len(selected)},{_money(total_amount(selected))}")
    rows += ["", "Detailed Transactions", "Date,Description,Category,Vendor,Reference,Amount"]
    for r in sorted(selected, key=lambda r: (r.pay_date, r.id)):
        rows.append(
            ",".join(
                (
                    r.pay_date,
                    _q(r.description),
                    _q(r.main_category),
                    _q(r.vendor),
                    _q(r.reference_number),
                    _money(amount_of(r)),
                )
            )
        )
    return _lines(rows)


def export_category_budget_csv(lines: Sequence[CategoryBudgetLine]) -> str:
    """Category budget lines with a ``TOTAL`` row."""

    rows = [CATEGORY_BUDGET_HEADER]
    for line in lines:
        rows.append(
            ",".join(
                (
                    _q(line.category),
                    _money(line.budget),
                    _money(line.spent),
                    _money(line.remaining),
                    _pct(line.percent_used),
                    line.status.value,
                )
            )
        )
    budget = sum((line.budget for line in lines), 0.0)
    spent = sum((line.spent for line in lines), 0.0)
    rows.append(
        ",".join(
            (
                "TOTAL",
                _money(budget),
                _money(spent),
                _money(budget - spent),
                _pct(percent_used(budget, spent)),
                "",
            )
        )
    )
    return _lines(rows)


__all__ = [
    "CATEGORY_BUDGET_HEADER",
    "FUNDER_SUMMARY_HEADER",
    "IMPORT_TEMPLATE_HEADER",
    "LEDGER_HEADER",
    "export_category_budget_csv",
    "export_funder_report_csv",
    "export_funder_summary_csv",
    "export_ledger_csv",
    "import_template_csv",
    "ledger_row",
]

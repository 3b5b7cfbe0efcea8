"""Importer for user-supplied expense CSVs with loosely named headers.

Header mapping
--------------
Column positions are inferred from the lower-cased header row by keyword
containment: for each ledger field the first header whose text contains any
of that field's keywords is used. Fields with no matching header fall back to
a default for every row instead of aborting the import.

Row parsing
-----------
Rows are split on commas and literal ``"`` characters are removed from each
cell. Quoted fields containing commas are therefore NOT supported (no RFC 4180
escaping); this mirrors the export format, which never emits escaped quotes.

- Rows with fewer than 3 cells are skipped.
- Rows whose amount does not parse as a finite, non-negative number are
  skipped.
- Categories go through :func:`grant_ledger.taxonomy.normalize_category`.
- ``quarter``/``year`` are derived from the date column, or from today when
  the file has no date column.

Outcomes
--------
:func:`import_ledger_text` and :func:`import_ledger_file` never raise for
file content. They report one of three outcomes: ``success`` (at least one
record), ``warning`` (non-CSV extension, or zero valid rows) and ``error``
(unreadable or unparseable file; no partial records are returned).
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from os import PathLike
from pathlib import Path

from ..logging_setup import get_logger
from ..models import LedgerRecord
from ..records import build_record

_logger = get_logger("grant_ledger.ingest.csv_importer")

# ---------------------------------------------------------------------------
# Header keywords (matched against lower-cased header text)
# ---------------------------------------------------------------------------

DATE_KEYWORDS: tuple[str, ...] = ("date", "day")
AMOUNT_KEYWORDS: tuple[str, ...] = ("amount", "spend", "cost")
CATEGORY_KEYWORDS: tuple[str, ...] = ("category",)
SUBCATEGORY_KEYWORDS: tuple[str, ...] = ("subcategory", "sub")
VENDOR_KEYWORDS: tuple[str, ...] = ("vendor",)
DESCRIPTION_KEYWORDS: tuple[str, ...] = ("description",)
REFERENCE_KEYWORDS: tuple[str, ...] = ("invoice", "check", "reference", "number")
ITEM_NAME_KEYWORDS: tuple[str, ...] = ("item", "name")
FUNDER_KEYWORDS: tuple[str, ...] = ("funder", "grant")
PAYMENT_METHOD_KEYWORDS: tuple[str, ...] = ("payment", "method")

MIN_ROW_CELLS = 3
UNSPECIFIED_VENDOR = "Unspecified"
FALLBACK_ITEM_NAME = "Expense Item"
IMPORT_PAYMENT_METHOD = "Import"

NON_CSV_MESSAGE = (
    "Format notice: please save your spreadsheet as a CSV file so that every "
    "column (Vendor, Item, Invoice #) maps correctly."
)
NO_VALID_ROWS_MESSAGE = "No valid data found. Check your CSV headers against the template."
PARSE_FAILED_MESSAGE = "Failed to parse CSV. Ensure formatting matches the template."


class ImportOutcome(StrEnum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Outcome of one file import.

    ``records`` is empty unless ``outcome`` is ``success``. Merging the
    records into an existing ledger is the caller's responsibility.
    """

    outcome: ImportOutcome
    message: str
    records: tuple[LedgerRecord, ...] = field(default=())

    @property
    def imported(self) -> int:
        return len(self.records)


@dataclass(frozen=True, slots=True)
class ColumnMap:
    """Resolved column index per ledger field (``None`` when absent)."""

    date: int | None
    amount: int | None
    category: int | None
    sub_category: int | None
    vendor: int | None
    description: int | None
    reference: int | None
    item_name: int | None
    funder: int | None
    payment_method: int | None


# ---------------------------------------------------------------------------
# Column resolution
# ---------------------------------------------------------------------------


def _clean_cell(value: str) -> str:
    return value.strip().replace('"', "")


def resolve_column(headers: Sequence[str], keywords: Sequence[str]) -> int | None:
    """Return the index of the first header containing any of ``keywords``.

    Headers are scanned in order and compared lower-cased; the first header
    that contains at least one keyword wins, regardless of keyword order.
    Returns ``None`` when no header matches.
    """

    for idx, header in enumerate(headers):
        text = header.lower()
        if any(k in text for k in keywords):
            return idx
    return None


def resolve_columns(headers: Sequence[str]) -> ColumnMap:
    return ColumnMap(
        date=resolve_column(headers, DATE_KEYWORDS),
        amount=resolve_column(headers, AMOUNT_KEYWORDS),
        category=resolve_column(headers, CATEGORY_KEYWORDS),
        sub_category=resolve_column(headers, SUBCATEGORY_KEYWORDS),
        vendor=resolve_column(headers, VENDOR_KEYWORDS),
        description=resolve_column(headers, DESCRIPTION_KEYWORDS),
        reference=resolve_column(headers, REFERENCE_KEYWORDS),
        item_name=resolve_column(headers, ITEM_NAME_KEYWORDS),
        funder=resolve_column(headers, FUNDER_KEYWORDS),
        payment_method=resolve_column(headers, PAYMENT_METHOD_KEYWORDS),
    )


# ---------------------------------------------------------------------------
# Row parsing
# ---------------------------------------------------------------------------


def _parse_amount(raw: str | None) -> float | None:
    if raw is None:
        return None
    s = raw.strip()
    if s.startswith("$"):
        s = s[1:].strip()
    try:
        value = float(s)
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def _cell(cols: Sequence[str], idx: int | None) -> str | None:
    if idx is None:
        return None
    return cols[idx] if idx < len(cols) else ""


def parse_ledger_csv(
    text: str,
    *,
    today: date | None = None,
    default_year: int | None = None,
) -> list[LedgerRecord]:
    """Parse CSV text into ledger records.

    Raises ``ValueError`` when the text has no header row. Row-level problems
    never raise: offending rows are skipped and logged at debug level.
    """

    # A byte-order mark would otherwise stick to the first header.
    lines = [line for line in text.removeprefix("\ufeff").splitlines() if line.strip()]
    if not lines:
        raise ValueError("CSV appears to have no header row")

    headers = [_clean_cell(h).lower() for h in lines[0].split(",")]
    columns = resolve_columns(headers)
    if columns.amount is None:
        _logger.info("csv_import:no_amount_column headers=%s", headers)

    fallback_date = (today or date.today()).isoformat()
    records: list[LedgerRecord] = []
    skipped = 0
    for line_no, line in enumerate(lines[1:], start=2):
        cols = [_clean_cell(c) for c in line.split(",")]
        if len(cols) < MIN_ROW_CELLS:
            skipped += 1
            continue

        raw_amount = _cell(cols, columns.amount)
        amount = _parse_amount(raw_amount) if columns.amount is not None else 0.0
        if amount is None:
            _logger.debug("csv_import:row_skipped line=%d amount=%r", line_no, raw_amount)
            skipped += 1
            continue

        pay_date = _cell(cols, columns.date) if columns.date is not None else fallback_date
        vendor = _cell(cols, columns.vendor)
        description = _cell(cols, columns.description) or ""
        name = _cell(cols, columns.item_name)
        if columns.item_name is None:
            name = description or vendor or FALLBACK_ITEM_NAME

        records.append(
            build_record(
                name=name or "",
                amount=amount,
                pay_date=pay_date or "",
                main_category=_cell(cols, columns.category),
                sub_category=_cell(cols, columns.sub_category),
                vendor=vendor if vendor is not None else UNSPECIFIED_VENDOR,
                description=description,
                reference_number=_cell(cols, columns.reference) or "",
                payment_method=_cell(cols, columns.payment_method) or IMPORT_PAYMENT_METHOD,
                funder=_cell(cols, columns.funder),
                default_year=default_year,
                id_prefix="imp",
            )
        )

    _logger.info(
        "csv_import:parsed rows=%d imported=%d skipped=%d",
        len(lines) - 1,
        len(records),
        skipped,
    )
    return records


# ---------------------------------------------------------------------------
# File-level entrypoints
# ---------------------------------------------------------------------------


def _has_csv_extension(filename: str) -> bool:
    return Path(filename).suffix.lower() == ".csv"


def import_ledger_text(
    text: str,
    *,
    filename: str = "upload.csv",
    today: date | None = None,
    default_year: int | None = None,
) -> ImportResult:
    """Parse already-read file content and classify the outcome."""

    if not _has_csv_extension(filename):
        _logger.info("csv_import:non_csv filename=%s", filename)
        return ImportResult(ImportOutcome.WARNING, NON_CSV_MESSAGE)

    try:
        records = parse_ledger_csv(text, today=today, default_year=default_year)
    except ValueError as e:
        _logger.warning("csv_import:parse_failed filename=%s error=%s", filename, e)
        return ImportResult(ImportOutcome.ERROR, f"{PARSE_FAILED_MESSAGE} ({e})")

    if not records:
        return ImportResult(ImportOutcome.WARNING, NO_VALID_ROWS_MESSAGE)
    return ImportResult(
        ImportOutcome.SUCCESS,
        f"Imported {len(records)} entries from {filename}.",
        tuple(records),
    )


def import_ledger_file(
    path: str | PathLike[str],
    *,
    today: date | None = None,
    default_year: int | None = None,
) -> ImportResult:
    """Read ``path`` in one shot and import it.

    The extension check happens before the file is opened, so a non-CSV file
    is never read.
    """

    p = Path(path)
    if not _has_csv_extension(p.name):
        return import_ledger_text("", filename=p.name)

    try:
        # utf-8-sig drops a spreadsheet BOM that would otherwise pollute the
        # first header.
        text = p.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        _logger.warning("csv_import:read_failed path=%s error=%s", p, e)
        return ImportResult(ImportOutcome.ERROR, f"Could not read {p.name}: {e}")

    return import_ledger_text(text, filename=p.name, today=today, default_year=default_year)


__all__ = [
    "AMOUNT_KEYWORDS",
    "CATEGORY_KEYWORDS",
    "DATE_KEYWORDS",
    "DESCRIPTION_KEYWORDS",
    "FUNDER_KEYWORDS",
    "ITEM_NAME_KEYWORDS",
    "PAYMENT_METHOD_KEYWORDS",
    "REFERENCE_KEYWORDS",
    "SUBCATEGORY_KEYWORDS",
    "VENDOR_KEYWORDS",
    "ColumnMap",
    "ImportOutcome",
    "ImportResult",
    "import_ledger_file",
    "import_ledger_text",
    "parse_ledger_csv",
    "resolve_column",
    "resolve_columns",
]

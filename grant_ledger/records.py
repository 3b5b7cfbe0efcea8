"""Ledger record construction, derivation and collection helpers.

Records are built once and never updated: ``quarter`` and ``year`` are
computed from ``pay_date`` at construction time and stored. Correcting a
record means removing it and building a new one.

Collection helpers never mutate their input; each returns a new list so
aggregations computed from the previous list stay valid.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from .config import get_settings
from .logging_setup import get_logger
from .models import LedgerRecord, ManualEntry, Quarter, Records
from .taxonomy import normalize_category

_logger = get_logger("grant_ledger.records")

# Used when a month component cannot be read: the last quarter, matching the
# fall-through of a month comparison chain.
FALLBACK_QUARTER: Quarter = "Q4"


class EntryValidationError(ValueError):
    """A manual entry was rejected before a record was built.

    ``fields`` lists the offending field names in form order.
    """

    def __init__(self, fields: tuple[str, ...], detail: str) -> None:
        super().__init__(f"invalid ledger entry ({', '.join(fields)}): {detail}")
        self.fields = fields


# ---------------------------------------------------------------------------
# Derivation
# ---------------------------------------------------------------------------


def month_of(date_string: str) -> int | None:
    parts = (date_string or "").strip().split("-")
    if len(parts) < 2:
        return None
    try:
        month = int(parts[1])
    except ValueError:
        return None
    return month if 1 <= month <= 12 else None


def derive_quarter(date_string: str) -> Quarter:
    """Return the calendar quarter of a ``YYYY-MM-DD`` string.

    Months 1-3, 4-6, 7-9 and 10-12 map to Q1-Q4. A missing, non-numeric or
    out-of-range month yields :data:`FALLBACK_QUARTER`; this never raises.
    """

    month = month_of(date_string)
    if month is None:
        return FALLBACK_QUARTER
    if month <= 3:
        return "Q1"
    if month <= 6:
        return "Q2"
    if month <= 9:
        return "Q3"
    return "Q4"


def derive_year(date_string: str, default_year: int | None = None) -> int:
    """Return the leading four-digit year of a ``YYYY-MM-DD`` string.

    Only the year component has to be well formed, so ``2024-02-30`` still
    yields 2024 and stays consistent with the quarter read from its month.
    Otherwise the ``default_year`` argument or the configured default is used.
    """

    head = (date_string or "").strip().split("-")[0]
    if len(head) == 4 and head.isascii() and head.isdigit():
        return int(head)
    return default_year if default_year is not None else get_settings().default_year


def new_record_id(prefix: str = "led") -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def build_record(
    *,
    name: str,
    amount: float | None,
    pay_date: str,
    main_category: str | None = None,
    sub_category: str | None = None,
    vendor: str = "",
    description: str = "",
    reference_number: str = "",
    payment_method: str = "",
    funder: str | None = None,
    year: int | None = None,
    default_year: int | None = None,
    id_prefix: str = "led",
) -> LedgerRecord:
    """Build a well-formed record from raw field values.

    Assigns a fresh id, normalizes the category and derives ``quarter`` from
    ``pay_date``. ``year`` overrides the derived year when given.
    """

    return LedgerRecord(
        id=new_record_id(id_prefix),
        name=name,
        amount=amount,
        pay_date=pay_date,
        quarter=derive_quarter(pay_date),
        year=year if year is not None else derive_year(pay_date, default_year),
        main_category=normalize_category(main_category),
        sub_category=sub_category or None,
        vendor=vendor,
        description=description,
        reference_number=reference_number,
        payment_method=payment_method,
        funder=funder or None,
    )


def create_record(
    entry: ManualEntry | Mapping[str, Any], *, year: int | None = None
) -> LedgerRecord:
    """Validate a manual entry form and build its record.

    Raises :class:`EntryValidationError` when a required field (name, amount,
    pay date, funder) is missing or malformed; no record is built in that
    case.
    """

    if not isinstance(entry, ManualEntry):
        try:
            entry = ManualEntry.model_validate(dict(entry))
        except ValidationError as exc:
            fields = tuple(
                dict.fromkeys(str(err["loc"][0]) for err in exc.errors() if err.get("loc"))
            )
            raise EntryValidationError(fields or ("entry",), str(exc)) from None

    record = build_record(
        name=entry.name,
        amount=entry.amount,
        pay_date=entry.pay_date,
        main_category=entry.main_category,
        sub_category=entry.sub_category,
        vendor=entry.vendor,
        description=entry.description,
        reference_number=entry.reference_number,
        payment_method=entry.payment_method,
        funder=entry.funder,
        year=year,
    )
    _logger.debug(
        "records:created id=%s funder=%s quarter=%s year=%d",
        record.id,
        record.funder,
        record.quarter,
        record.year,
    )
    return record


# ---------------------------------------------------------------------------
# Collection helpers (replace-by-new-list)
# ---------------------------------------------------------------------------


def append_records(existing: Records, new: Iterable[LedgerRecord]) -> list[LedgerRecord]:
    """Return ``existing`` followed by ``new`` as a new list."""

    return [*existing, *new]


def remove_record(records: Records, record_id: str) -> list[LedgerRecord]:
    """Return a new list without the record whose id is ``record_id``."""

    return [r for r in records if r.id != record_id]


def clear_records() -> list[LedgerRecord]:
    return []


__all__ = [
    "FALLBACK_QUARTER",
    "EntryValidationError",
    "append_records",
    "build_record",
    "clear_records",
    "create_record",
    "derive_quarter",
    "derive_year",
    "month_of",
    "new_record_id",
    "remove_record",
]

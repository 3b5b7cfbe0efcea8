"""Data models and type aliases for ``grant_ledger``.

Ledger records and funders are frozen ``dataclass`` value objects: the caller
owns the collection and replaces it on every change, while the library only
reads it. Pydantic models validate untrusted input at the edges (manual entry
forms and funder configuration files) before any value object is built.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .taxonomy import DEFAULT_CATEGORY

# ---------------------------------------------------------------------------
# Core record types
# ---------------------------------------------------------------------------

Quarter: TypeAlias = Literal["Q1", "Q2", "Q3", "Q4"]

QUARTERS: tuple[Quarter, ...] = ("Q1", "Q2", "Q3", "Q4")


@dataclass(frozen=True, slots=True)
class LedgerRecord:
    """One normalized expense transaction.

    ``quarter`` and ``year`` are derived from ``pay_date`` once, when the
    record is built, and stored as plain fields. Aggregations read the stored
    values; nothing re-derives them afterwards.

    ``amount`` may be ``None`` for records supplied by a caller with a missing
    value; every aggregation treats it as ``0``.
    """

    id: str
    name: str
    amount: float | None
    pay_date: str
    quarter: Quarter
    year: int
    main_category: str = DEFAULT_CATEGORY
    sub_category: str | None = None
    vendor: str = ""
    description: str = ""
    reference_number: str = ""
    payment_method: str = ""
    funder: str | None = None


Records: TypeAlias = Sequence[LedgerRecord]
"""A caller-owned, ordered collection of ledger records."""


@dataclass(frozen=True, slots=True)
class Funder:
    """One budget envelope.

    ``name`` is the join key referenced by :attr:`LedgerRecord.funder`.
    ``approved`` is the fixed ceiling for the funding period; spending is
    always derived from the records, never stored here.
    """

    id: str
    name: str
    approved: float
    source: str | None = None
    report_type: Literal["quarterly", "annual"] = "quarterly"
    # Optional per-category line budgets (e.g. a state appropriation's
    # attachment lines). Empty when the funder accepts any category.
    category_budgets: Mapping[str, float] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


def _require_text(v: str | None) -> str:
    if v is None or not v.strip():
        raise ValueError("must be non-empty")
    return v.strip()


class ManualEntry(BaseModel):
    """Typed, validated model of a manual ledger entry form.

    ``name``, ``amount``, ``pay_date`` and ``funder`` are required; the form
    is rejected before any :class:`LedgerRecord` is built when any of them is
    missing or malformed.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str
    amount: float
    pay_date: str
    funder: str
    main_category: str = DEFAULT_CATEGORY
    sub_category: str | None = None
    vendor: str = ""
    description: str = ""
    reference_number: str = ""
    payment_method: str = "ACH"

    @field_validator("name", "funder")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        return _require_text(v)

    @field_validator("amount")
    @classmethod
    def _amount_non_negative(cls, v: float) -> float:
        if not math.isfinite(v) or v < 0:
            raise ValueError("amount must be a finite, non-negative number")
        return v

    @field_validator("pay_date")
    @classmethod
    def _iso_date(cls, v: str) -> str:
        s = _require_text(v)
        try:
            date.fromisoformat(s)
        except ValueError as exc:
            raise ValueError("pay_date must be a YYYY-MM-DD date") from exc
        return s

    @field_validator("sub_category")
    @classmethod
    def _blank_sub_category(cls, v: str | None) -> str | None:
        return v or None


class FunderSpec(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    id: str
    name: str
    approved: float = Field(ge=0)
    source: str | None = None
    report_type: Literal["quarterly", "annual"] = "quarterly"
    category_budgets: dict[str, float] = Field(default_factory=dict)

    @field_validator("id", "name")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        return _require_text(v)

    @field_validator("category_budgets")
    @classmethod
    def _budgets_non_negative(cls, v: dict[str, float]) -> dict[str, float]:
        for label, amount in v.items():
            if amount < 0:
                raise ValueError(f"category budget for {label!r} must be non-negative")
        return v

    def to_funder(self) -> Funder:
        return Funder(
            id=self.id,
            name=self.name,
            approved=float(self.approved),
            source=self.source,
            report_type=self.report_type,
            category_budgets=dict(self.category_budgets),
        )


class FundersFile(BaseModel):
    """Top-level schema for a funder configuration JSON file."""

    model_config = ConfigDict(extra="forbid")

    schema_version: Literal[1]
    fiscal_year: str | None = None
    funders: list[FunderSpec]

    @field_validator("funders")
    @classmethod
    def _unique_names(cls, v: list[FunderSpec]) -> list[FunderSpec]:
        seen: set[str] = set()
        for spec in v:
            if spec.name in seen:
                raise ValueError(f"duplicate funder name: {spec.name!r}")
            seen.add(spec.name)
        return v


__all__ = [
    "QUARTERS",
    "Funder",
    "FunderSpec",
    "FundersFile",
    "LedgerRecord",
    "ManualEntry",
    "Quarter",
    "Records",
]

"""Closed two-level expense taxonomy.

The set of main categories is fixed; ``Operations`` and ``Professional
Services`` carry an ordered list of suggested sub-categories, every other main
category has an empty list (any sub-category is accepted, none is prompted).

Exports
-------
- ``CATEGORY_TAXONOMY``: the immutable :class:`Taxonomy` instance.
- ``is_valid_main_category(...)`` / ``subcategories_for(...)``: lookups.
- ``normalize_category(...)``: map arbitrary input onto a canonical label,
  falling back to ``DEFAULT_CATEGORY`` instead of rejecting the value.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

DEFAULT_CATEGORY = "Operations"

_OPERATIONS_SUBCATEGORIES: tuple[str, ...] = (
    "Internet and telecom",
    "Software subscriptions",
    "Printing and copying",
    "Office supplies",
    "Outreach and marketing",
    "Job fairs and employee events",
    "Facility rent",
    "Utilities",
    "Insurance and licenses",
    "Certification exam fees",
    "DMV ID and licensing",
    "Work uniform and boots",
    "Tools and safety gear",
    "Background checks and drug screenings",
    "Transportation assistance",
    "Fuel and vehicle ops",
    "Training materials and curricula",
    "Device equipment rental and maintenance",
)

_PROFESSIONAL_SERVICES_SUBCATEGORIES: tuple[str, ...] = (
    "IT support",
    "Reporting consulting",
    "Training providers",
    "Facilitators",
    "Fatherhood class",
    "External facilitator",
    "CQI support",
    "Media outreach contractor",
    "Legal compliance consultant",
    "Human resources",
    "Accounting",
)


def normalize_name(name: str) -> str:
    """Return a trimmed, single-spaced representation of ``name``."""

    return " ".join(name.strip().split())


@dataclass(frozen=True, slots=True)
class Taxonomy:
    """Immutable mapping of main category to its ordered sub-categories."""

    categories: Mapping[str, tuple[str, ...]]
    default: str = DEFAULT_CATEGORY

    def __post_init__(self) -> None:
        if self.default not in self.categories:
            raise ValueError(f"default category {self.default!r} is not in the taxonomy")
        # Freeze the mapping so callers cannot mutate the shared table.
        object.__setattr__(self, "categories", MappingProxyType(dict(self.categories)))

    @property
    def main_categories(self) -> tuple[str, ...]:
        return tuple(self.categories)

    def is_valid(self, value: object) -> bool:
        return isinstance(value, str) and value in self.categories

    def subcategories(self, main_category: str) -> tuple[str, ...]:
        return self.categories.get(main_category, ())

    def normalize(self, value: object) -> str:
        """Map ``value`` to a canonical main category.

        Whitespace is collapsed and the comparison ignores case; anything that
        still does not match resolves to ``self.default``.
        """

        if not isinstance(value, str):
            return self.default
        if value in self.categories:
            return value
        wanted = normalize_name(value).casefold()
        for label in self.categories:
            if label.casefold() == wanted:
                return label
        return self.default


CATEGORY_TAXONOMY = Taxonomy(
    categories={
        "Operations": _OPERATIONS_SUBCATEGORIES,
        "Operating Services": (),
        "Professional Services": _PROFESSIONAL_SERVICES_SUBCATEGORIES,
        "Contract Services": (),
        "Administrative": (),
        "Subscriptions": (),
        "Gross Salaries": (),
        "Related Benefits": (),
        "Other Charges": (),
        "Acquisition and Major Repairs": (),
        "Travel": (),
    }
)

MAIN_CATEGORIES: tuple[str, ...] = CATEGORY_TAXONOMY.main_categories


def is_valid_main_category(value: object) -> bool:
    """Return ``True`` when ``value`` is exactly one of the main categories."""

    return CATEGORY_TAXONOMY.is_valid(value)


def subcategories_for(main_category: str) -> tuple[str, ...]:
    """Return the ordered sub-categories of ``main_category`` (possibly empty)."""

    return CATEGORY_TAXONOMY.subcategories(main_category)


def normalize_category(value: object) -> str:
    return CATEGORY_TAXONOMY.normalize(value)


__all__ = [
    "CATEGORY_TAXONOMY",
    "DEFAULT_CATEGORY",
    "MAIN_CATEGORIES",
    "Taxonomy",
    "is_valid_main_category",
    "normalize_category",
    "normalize_name",
    "subcategories_for",
]

"""Process-wide configuration for ``grant_ledger``.

Settings are read from environment variables once (after ``python-dotenv``
loads a local ``.env`` without overriding the environment) and exposed as an
immutable :class:`LedgerSettings` record. The funder list is configuration as
well: a JSON file validated by :class:`~grant_ledger.models.FundersFile` and
materialized as a tuple of frozen :class:`~grant_ledger.models.Funder`.

Environment variables
---------------------
- ``GRANT_LEDGER_DEFAULT_YEAR``: fallback year for unparseable dates (2025).
- ``GRANT_LEDGER_FLUCTUATION_THRESHOLD``: percent change above which a
  period-over-period delta is flagged for review (20).
- ``GRANT_LEDGER_FUNDERS_FILE``: path to a funder JSON file; the bundled
  FY 2025-26 file is used when unset.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from functools import cache
from os import PathLike
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from .logging_setup import get_logger
from .models import Funder, FundersFile

_logger = get_logger("grant_ledger.config")

DEFAULT_YEAR = 2025
DEFAULT_FLUCTUATION_THRESHOLD = 20.0
BUNDLED_FUNDERS_FILE = Path(__file__).resolve().parent / "seeds" / "funders.fy2025_26.json"


@dataclass(frozen=True, slots=True)
class LedgerSettings:
    default_year: int = DEFAULT_YEAR
    fluctuation_threshold: float = DEFAULT_FLUCTUATION_THRESHOLD
    funders_file: Path = BUNDLED_FUNDERS_FILE


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        _logger.warning("config:invalid_int key=%s value=%r; using %d", key, raw, default)
        return default


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw.strip())
    except ValueError:
        value = -1.0
    if value < 0:
        _logger.warning("config:invalid_float key=%s value=%r; using %s", key, raw, default)
        return default
    return value


def load_settings(env: Mapping[str, str] | None = None) -> LedgerSettings:
    """Build settings from ``env`` (defaults to ``os.environ`` after ``.env``)."""

    if env is None:
        load_dotenv(override=False)
        env = os.environ

    funders_raw = (env.get("GRANT_LEDGER_FUNDERS_FILE") or "").strip()
    return LedgerSettings(
        default_year=_env_int(env, "GRANT_LEDGER_DEFAULT_YEAR", DEFAULT_YEAR),
        fluctuation_threshold=_env_float(
            env, "GRANT_LEDGER_FLUCTUATION_THRESHOLD", DEFAULT_FLUCTUATION_THRESHOLD
        ),
        funders_file=Path(funders_raw) if funders_raw else BUNDLED_FUNDERS_FILE,
    )


@cache
def get_settings() -> LedgerSettings:
    """Return the process-wide settings, loading them on first use."""

    return load_settings()


def load_funders(path: str | PathLike[str] | None = None) -> tuple[Funder, ...]:
    """Load and validate a funder configuration file.

    Raises ``ValueError`` with the validation detail when the file is not a
    valid funder configuration, and ``OSError`` when it cannot be read.
    """

    p = Path(path) if path is not None else get_settings().funders_file
    text = p.read_text(encoding="utf-8")
    try:
        parsed = FundersFile.model_validate_json(text)
    except ValidationError as exc:
        raise ValueError(f"invalid funder configuration {p}: {exc}") from exc
    funders = tuple(spec.to_funder() for spec in parsed.funders)
    _logger.debug("config:funders_loaded path=%s count=%d", p, len(funders))
    return funders


@cache
def default_funders() -> tuple[Funder, ...]:
    """Return the configured funder list, loaded once per process."""

    return load_funders()


def funders_from_mappings(items: list[Mapping[str, object]]) -> tuple[Funder, ...]:
    """Validate in-memory funder mappings (e.g. from an API payload)."""

    try:
        parsed = FundersFile.model_validate({"schema_version": 1, "funders": items})
    except ValidationError as exc:
        raise ValueError(f"invalid funder configuration: {exc}") from exc
    return tuple(spec.to_funder() for spec in parsed.funders)


__all__ = [
    "BUNDLED_FUNDERS_FILE",
    "DEFAULT_FLUCTUATION_THRESHOLD",
    "DEFAULT_YEAR",
    "LedgerSettings",
    "default_funders",
    "funders_from_mappings",
    "get_settings",
    "load_funders",
    "load_settings",
]

"""Logging for ``grant_ledger``.

The ledger library only emits records; it never decides where they go. Every
module holds ``_logger = get_logger("grant_ledger.<module>")`` and logs
grep-friendly ``op:event key=value`` lines, for example
``csv_import:parsed rows=12 imported=10 skipped=2`` when an upload has been
read, or ``config:invalid_int key=GRANT_LEDGER_DEFAULT_YEAR`` when a setting
falls back to its default.

Until a host calls :func:`configure_logging` the ``grant_ledger`` logger
carries a ``NullHandler``, so importing the package in a notebook or a web
app prints nothing. The ``grant-ledger`` CLI configures it once from its root
callback, using ``--log-level`` or ``GRANT_LEDGER_LOG_LEVEL``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_ROOT_LOGGER = "grant_ledger"
_LEVEL_ENV_VAR = "GRANT_LEDGER_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def _level_from_text(text: str) -> int | None:
    name = text.strip().upper()
    if name.isdigit():
        return int(name)
    value = getattr(logging, name, None)
    return value if isinstance(value, int) else None


def _resolve_level(level: int | str | None) -> int:
    """Turn ``--log-level`` style input into a numeric level.

    An explicit argument wins; an unrecognized name means INFO rather than a
    fall-through to the environment. Without an argument the environment
    variable is consulted, then INFO.
    """

    if isinstance(level, int):
        return level
    text = level if level is not None else os.getenv(_LEVEL_ENV_VAR)
    if not text:
        return logging.INFO
    resolved = _level_from_text(text)
    return resolved if resolved is not None else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Send ``grant_ledger`` log records to ``stream`` (stderr by default).

    Idempotent: the first call wins and later calls are ignored, so the CLI
    callback and an embedding application cannot stack handlers. The package
    logger stops propagating so ledger lines are not printed twice by a host
    that also configured the root logger.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_ROOT_LOGGER)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = _resolve_level(level)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False
    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Module logger under ``grant_ledger``; silent until configured."""

    root = logging.getLogger(_ROOT_LOGGER)
    if not _CONFIGURED and not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]

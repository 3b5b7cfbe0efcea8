"""Pytest configuration for test isolation.

Settings and the funder list are cached per process, and both read
``GRANT_LEDGER_*`` environment variables (plus a local ``.env``). A developer
shell with those variables set, or a test that sets them, would otherwise
leak into later tests. The autouse fixture below clears the variables, runs
each test from its own temporary directory (so no ``.env`` is picked up) and
drops the caches before and after every test.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from grant_ledger.config import default_funders, get_settings


@pytest.fixture(autouse=True)
def _isolate_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    for key in list(os.environ):
        if key.startswith("GRANT_LEDGER_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    default_funders.cache_clear()
    yield
    get_settings.cache_clear()
    default_funders.cache_clear()

import logging

import pytest

from grant_ledger import logging_setup
from grant_ledger.logging_setup import get_logger


def test_get_logger_installs_null_handler_until_configured(monkeypatch: pytest.MonkeyPatch):
    pkg = logging.getLogger("grant_ledger")
    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    monkeypatch.setattr(pkg, "handlers", [])

    log = get_logger("grant_ledger.records")
    assert log.name == "grant_ledger.records"
    assert any(isinstance(h, logging.NullHandler) for h in pkg.handlers)


@pytest.mark.parametrize(
    "level, env, expected",
    [
        ("debug", None, logging.DEBUG),
        (" WARNING ", None, logging.WARNING),
        ("15", None, 15),
        (logging.ERROR, None, logging.ERROR),
        (None, "DEBUG", logging.DEBUG),
        (None, None, logging.INFO),
        ("not-a-level", "DEBUG", logging.INFO),
        (None, "bogus", logging.INFO),
        ("0", None, logging.NOTSET),
    ],
)
def test_level_resolution(monkeypatch: pytest.MonkeyPatch, level, env, expected):
    if env is not None:
        monkeypatch.setenv("GRANT_LEDGER_LOG_LEVEL", env)
    assert logging_setup._resolve_level(level) == expected


def test_configure_logging_attaches_one_stream_handler(monkeypatch: pytest.MonkeyPatch):
    pkg = logging.getLogger("grant_ledger")
    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    monkeypatch.setattr(pkg, "handlers", [logging.NullHandler()])
    monkeypatch.setattr(pkg, "propagate", True)
    monkeypatch.setattr(pkg, "level", pkg.level)

    logging_setup.configure_logging("DEBUG")
    logging_setup.configure_logging("ERROR")

    assert len(pkg.handlers) == 1
    assert isinstance(pkg.handlers[0], logging.StreamHandler)
    assert pkg.level == logging.DEBUG
    assert pkg.propagate is False

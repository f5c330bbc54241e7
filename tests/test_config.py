"""
Tests for settings validation and logging setup.
"""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from appointment_core.core.config import Settings
from appointment_core.main import ContextFormatter, configure_logging


def test_unknown_provider_timezone_fails_at_startup():
    with pytest.raises(ValidationError, match="PROVIDER_TIMEZONE"):
        Settings(_env_file=None, PROVIDER_TIMEZONE="Europe/Moscw")


def test_known_provider_timezone_is_kept():
    assert Settings(_env_file=None, PROVIDER_TIMEZONE="Asia/Yekaterinburg").PROVIDER_TIMEZONE == "Asia/Yekaterinburg"
    assert Settings(_env_file=None).PROVIDER_TIMEZONE == "Europe/Moscow"


def test_configure_logging_installs_one_context_handler():
    root = logging.getLogger()
    level = root.level
    try:
        configure_logging("warning")
        configure_logging("debug")

        ours = [h for h in root.handlers if isinstance(h.formatter, ContextFormatter)]
        assert len(ours) == 1
        assert root.level == logging.DEBUG
    finally:
        for handler in [h for h in root.handlers if isinstance(h.formatter, ContextFormatter)]:
            root.removeHandler(handler)
        root.setLevel(level)


def test_context_formatter_appends_known_extras():
    record = logging.LogRecord("booking", logging.INFO, __file__, 1, "Booking failed", None, None)
    record.attempt = "token-1"
    record.code = "slot_taken"
    record.ignored = "x"

    line = ContextFormatter("%(levelname)s:%(name)s:%(message)s").format(record)

    assert line == "INFO:booking:Booking failed | attempt=token-1 code=slot_taken"

"""
Tests for settings helpers and the structlog setup.
"""

import json
import logging

import pytest
import structlog

from villa_booking.core.config import Settings
from villa_booking.core.logging import get_logger, log_format, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
    root.handlers, root.level = handlers, level


def test_migration_url_derived_from_async_url():
    settings = Settings(DATABASE_URL="postgresql+asyncpg://app:secret@db:5432/villas")
    assert settings.migration_database_url == "postgresql://app:secret@db:5432/villas"

    settings = Settings(DATABASE_URL_SYNC="postgresql+psycopg2://migrator@db/villas")
    assert settings.migration_database_url == "postgresql+psycopg2://migrator@db/villas"


@pytest.mark.parametrize(
    "overrides, expected",
    [
        ({}, "console"),
        ({"ENVIRONMENT": "production"}, "json"),
        ({"ENVIRONMENT": "production", "LOG_FORMAT": "console"}, "console"),
        ({"LOG_FORMAT": "JSON"}, "json"),
    ],
)
def test_log_format(overrides, expected):
    assert log_format(Settings(**overrides)) == expected


def test_json_logs_carry_request_context(capsys, restore_logging):
    setup_logging(Settings(LOG_FORMAT="json", LOG_LEVEL="INFO"))
    structlog.contextvars.bind_contextvars(request_id="req-1", user_role="guest")

    get_logger("villa_booking.tests").info("hold_created", booking_id="b-1")
    logging.getLogger("villa_booking.tests.stdlib").warning("pool exhausted")
    get_logger("villa_booking.tests").debug("below_threshold")

    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines() if line.strip()]
    assert [line["event"] for line in lines] == ["hold_created", "pool exhausted"]

    structured, stdlib = lines
    assert structured["booking_id"] == "b-1"
    assert structured["level"] == "info"
    assert structured["logger"] == "villa_booking.tests"
    assert stdlib["level"] == "warning"
    for line in lines:
        assert line["request_id"] == "req-1"
        assert line["user_role"] == "guest"
        assert "timestamp" in line

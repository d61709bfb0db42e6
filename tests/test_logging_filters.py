"""Tests for sensitive data filtering and JSON log formatting."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from io import StringIO

import pytest

from wallet_api.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    set_request_id,
)


@pytest.fixture
def capture():
    """Logger wired to an in-memory stream with the production filters."""
    logger = logging.getLogger("test_wallet_logging")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()
    clear_request_id()


def test_redacts_connection_strings_and_client_ips(capture):
    logger, stream = capture

    logger.info(
        "db.connect",
        extra={
            "database_url": "postgresql://wallet:hunter2@db/wallet",
            "client_ip": "198.51.100.7",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()
    assert "hunter2" not in output
    assert "198.51.100.7" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_safe_fields_pass_through(capture):
    logger, stream = capture

    logger.info(
        "transaction.created",
        extra={"transaction_id": 7, "user_id": "u1", "category": "food"},
    )

    record = json.loads(stream.getvalue())
    assert record["message"] == "transaction.created"
    assert record["transaction_id"] == 7
    assert record["user_id"] == "u1"
    assert "[REDACTED]" not in stream.getvalue()


def test_redacts_nested_dicts(capture):
    logger, stream = capture

    logger.info(
        "nested_event",
        extra={
            "headers": {"authorization": "Bearer abc.def", "user-agent": "pytest"},
        },
    )

    output = stream.getvalue()
    assert "abc.def" not in output
    assert "pytest" in output


def test_decimal_values_serialize(capture):
    logger, stream = capture

    logger.info("summary", extra={"balance": Decimal("2954.50")})

    assert json.loads(stream.getvalue())["balance"] == "2954.50"


def test_request_id_from_context(capture):
    logger, stream = capture
    set_request_id("req-42")

    logger.info("with_context")

    assert json.loads(stream.getvalue())["request_id"] == "req-42"

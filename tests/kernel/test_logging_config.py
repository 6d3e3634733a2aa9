"""
Tests for structured logging.

Covers:
- StructuredFormatter JSON output, extras, Decimal/UUID/datetime encoding
- LogContext propagation and bind() restoration
- Exception fields from SalesOSError subclasses
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from salesos_kernel.exceptions import SaleNotFoundError
from salesos_kernel.logging_config import LogContext, StructuredFormatter, get_logger


def _format(record: logging.LogRecord) -> dict:
    return json.loads(StructuredFormatter().format(record))


def _record(msg="event", **extra) -> logging.LogRecord:
    record = logging.LogRecord("salesos.test", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    def test_basic_fields(self):
        payload = _format(_record("sale_recalculated"))

        assert payload["message"] == "sale_recalculated"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "salesos.test"
        assert "ts" in payload

    def test_extra_values_are_encoded(self):
        payload = _format(
            _record(
                amount=Decimal("12.50"),
                sale_id=UUID("12345678-1234-5678-1234-567812345678"),
                at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            )
        )

        assert payload["amount"] == "12.50"
        assert payload["sale_id"] == "12345678-1234-5678-1234-567812345678"
        assert payload["at"] == "2024-01-01T00:00:00+00:00"

    def test_nested_and_unknown_values(self):
        class Tenant:
            def __str__(self):
                return "tenant-a"

        payload = _format(
            _record(
                dates=[datetime(2024, 3, 31, 17, 0, tzinfo=timezone.utc)],
                tenant=Tenant(),
            )
        )

        assert payload["dates"] == ["2024-03-31T17:00:00+00:00"]
        assert payload["tenant"] == "tenant-a"

    def test_exception_fields(self):
        try:
            raise SaleNotFoundError("abc")
        except SaleNotFoundError:
            import sys

            record = logging.LogRecord(
                "salesos.test", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
            )

        payload = _format(record)

        assert payload["exc_type"] == "SaleNotFoundError"
        assert payload["exc_code"] == "SALE_NOT_FOUND"
        assert payload["exc_sale_id"] == "abc"
        assert "traceback" in payload


class TestLogContext:
    def test_context_is_merged(self):
        LogContext.set(correlation_id="corr-1", tenant_id="tenant-a")

        payload = _format(_record())

        assert payload["correlation_id"] == "corr-1"
        assert payload["tenant_id"] == "tenant-a"

    def test_bind_restores_previous_values(self):
        LogContext.set(sale_id="outer")

        with LogContext.bind(sale_id="inner", actor_id="ops"):
            assert LogContext.get_all()["sale_id"] == "inner"

        assert LogContext.get_all() == {"sale_id": "outer"}

    def test_clear(self):
        LogContext.set(request_id="r-1")
        LogContext.clear()

        assert LogContext.get_all() == {}

    def test_logger_namespace(self, captured_logs):
        get_logger("tests").info("hello", extra={"n": 1})

        records = captured_logs()
        assert records[-1]["logger"] == "salesos.tests"
        assert records[-1]["n"] == 1

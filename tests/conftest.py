"""
Pytest fixtures for the Sales OS core test suite.

Provides:
- An in-memory SQLite engine shared for the whole session
- Per-test sessions that roll back everything they wrote
- A deterministic clock, the default configuration and its runtime tables
- A factory for stored sales
- JSON log capture

Environment Variables:
- DATABASE_URL: SQLAlchemy URL to run the persistence tests against.
  Defaults to in-memory SQLite.
"""

import json
import logging
import os
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from salesos_config import get_active_config
from salesos_config.bridges import (
    build_branding_theme_table,
    build_commission_bands,
    build_implied_cost_settings,
)
from salesos_kernel.db.engine import (
    create_tables,
    drop_tables,
    init_engine_from_url,
    reset_engine,
)
from salesos_kernel.domain.clock import DeterministicClock
from salesos_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from salesos_kernel.models.sale import Sale

DEFAULT_DATABASE_URL = "sqlite://"

UK_DOMESTIC_ID = "d68f1fb5-ab36-48f5-809d-2752a2a1d940"
MARGIN_SCHEME_ID = "8173b901-4ea8-498b-a4ba-52a8446ec43f"
EXPORT_ID = "82e46ce4-09cf-4764-8342-4f774cf4040e"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture salesos logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            compute_economics(...)
            logs = captured_logs()
            assert any(r["message"] == "vat_rate_assumed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("salesos")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Configuration fixtures
# =============================================================================


@pytest.fixture(scope="session")
def config():
    """The packaged default configuration set."""
    return get_active_config()


@pytest.fixture(scope="session")
def themes(config):
    return build_branding_theme_table(config)


@pytest.fixture(scope="session")
def commission_bands(config):
    return build_commission_bands(config)


@pytest.fixture(scope="session")
def implied_cost_settings(config):
    return build_implied_cost_settings(config)


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(datetime(2024, 3, 31, 17, 0, 0, tzinfo=timezone.utc))


# =============================================================================
# Database fixtures
# =============================================================================


def get_database_url() -> str:
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


@pytest.fixture(scope="session")
def db_engine():
    """Single engine for the entire test session."""
    eng = init_engine_from_url(get_database_url(), echo=False)
    yield eng
    reset_engine()


@pytest.fixture(scope="session")
def db_tables(db_engine):
    """Create all tables once per session, drop once at end."""
    drop_tables()
    create_tables()
    yield
    drop_tables()


@pytest.fixture
def session(db_tables, db_engine) -> Generator[Session, None, None]:
    """Provide a database session that is rolled back after the test.

    The session joins an outer transaction on a dedicated connection; a
    ``session.commit()`` inside the test only releases a savepoint.
    """
    conn = db_engine.connect()
    trans = conn.begin()
    sess = Session(bind=conn, join_transaction_mode="create_savepoint", expire_on_commit=False)
    yield sess
    try:
        sess.close()
    finally:
        try:
            trans.rollback()
        finally:
            conn.close()


@pytest.fixture
def make_sale(session):
    """Factory fixture that stores a sale with sensible defaults.

    Returns a callable taking column overrides and returning the flushed
    ``Sale``.
    """
    counter = {"n": 0}

    def _make(**overrides) -> Sale:
        counter["n"] += 1
        values = {
            "sale_reference": f"SALE-{counter['n']:04d}",
            "sale_date": datetime(2024, 3, 1, tzinfo=timezone.utc),
            "branding_theme": UK_DOMESTIC_ID,
            "sale_amount_inc_vat": Decimal("12000.00"),
            "buy_price": Decimal("7000.00"),
            "status": "draft",
        }
        values.update(overrides)
        sale = Sale(**values)
        session.add(sale)
        session.flush()
        return sale

    return _make

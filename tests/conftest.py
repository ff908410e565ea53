"""
Pytest fixtures for the ledger engine test suite.

Provides:
- A fresh in-memory SQLite database per test, with the immutability
  listeners registered
- Kernel services and selectors bound to the test session
- The packaged standard chart of accounts, seeded on request
- Helpers for creating and posting entries
- Structured log capture

The PostgreSQL smoke test in tests/integration/ uses DATABASE_URL directly
and is skipped when it is not a postgresql:// URL.
"""

import json
import logging
from datetime import date
from io import StringIO
from typing import Generator
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session, sessionmaker

from ledger_config import DEFAULT_CONFIG_PATH
from ledger_config.bridges import build_account_seeds
from ledger_config.loader import load_settings
from ledger_kernel.db.engine import build_engine, create_tables
from ledger_kernel.db.immutability import register_immutability_listeners
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.domain.dtos import EntryHeader, LineSpec
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ledger_kernel.selectors.account_selector import AccountSelector
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.selectors.ledger_selector import LedgerSelector
from ledger_kernel.services.chart_service import ChartService
from ledger_kernel.services.ledger_service import LedgerService
from ledger_kernel.services.period_service import PeriodService
from ledger_kernel.services.sequence_service import SequenceService
from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.service import ReportingService


# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
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
    Capture ledger_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, post):
            post([...])
            logs = captured_logs()
            assert any(r["message"] == "entry_posted" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "postgres: mark test as requiring PostgreSQL"
    )


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database with all ledger tables."""
    eng = build_engine("sqlite://")
    create_tables(eng)
    register_immutability_listeners()
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory) -> Generator[Session, None, None]:
    """
    Session for one test.  Services flush only; the fixture rolls back
    whatever the test left behind.
    """
    sess = session_factory()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    """Clock fixed at 2024-06-15 12:00 UTC."""
    return DeterministicClock()


@pytest.fixture
def test_actor_id():
    return TEST_ACTOR_ID


# =============================================================================
# Configuration
# =============================================================================


@pytest.fixture
def default_settings():
    """Settings parsed from the packaged defaults/ledger.yaml."""
    return load_settings(DEFAULT_CONFIG_PATH)


# =============================================================================
# Services and selectors
# =============================================================================


@pytest.fixture
def sequence_service(session):
    return SequenceService(session)


@pytest.fixture
def period_service(session, deterministic_clock):
    return PeriodService(session, deterministic_clock)


@pytest.fixture
def chart_service(session):
    return ChartService(session)


@pytest.fixture
def ledger_service(session, deterministic_clock, period_service, sequence_service):
    return LedgerService(
        session,
        clock=deterministic_clock,
        period_service=period_service,
        sequence_service=sequence_service,
    )


@pytest.fixture
def account_selector(session):
    return AccountSelector(session)


@pytest.fixture
def journal_selector(session):
    return JournalSelector(session)


@pytest.fixture
def ledger_selector(session):
    return LedgerSelector(session)


@pytest.fixture
def reporting_config(default_settings):
    return ReportingConfig.from_settings(default_settings)


@pytest.fixture
def reporting_service(session, deterministic_clock, reporting_config):
    return ReportingService(session, clock=deterministic_clock, config=reporting_config)


# =============================================================================
# Chart and entry helpers
# =============================================================================


@pytest.fixture
def chart(session, chart_service, account_selector, default_settings):
    """
    Seed the standard chart and return its accounts keyed by code.

    The snapshots are taken at seed time; use ``balance_of`` for balances
    after posting.
    """
    chart_service.seed_chart(build_account_seeds(default_settings), TEST_ACTOR_ID)
    return {account.code: account for account in account_selector.list_all()}


@pytest.fixture
def balance_of(account_selector):
    """Current cached balance of the account with the given code."""

    def _balance(code: str):
        return account_selector.get_by_code(code).current_balance

    return _balance


@pytest.fixture
def create_entry(ledger_service, deterministic_clock):
    """
    Create a DRAFT entry.

    Usage::

        entry = create_entry([LineSpec.debit(a, 100), LineSpec.credit(b, 100)])
    """

    def _create(
        lines: list[LineSpec],
        entry_date: date | None = None,
        description: str = "Test entry",
        **header_fields,
    ):
        header = EntryHeader(
            entry_date=entry_date or deterministic_clock.today(),
            description=description,
            **header_fields,
        )
        return ledger_service.create_entry(header, lines, TEST_ACTOR_ID)

    return _create


@pytest.fixture
def post(create_entry, ledger_service):
    """Create and post an entry in one call; returns the POSTED entry."""

    def _post(lines: list[LineSpec], entry_date: date | None = None, **kwargs):
        entry = create_entry(lines, entry_date=entry_date, **kwargs)
        return ledger_service.post_entry(entry.id, TEST_ACTOR_ID)

    return _post

"""
Pytest fixtures for the licensing kernel test suite.

Provides:
- A fresh SQLite database file per test (tmp_path), schema created
- Session factory, a flush-only session for service tests, an orchestrator
- A DeterministicClock fixed at 2024-06-01 12:00 UTC
- Seeded clients, products, and discounts
- Structured log capture

Environment Variables:
- DATABASE_URL is ignored here; tests never touch a shared database.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from io import StringIO
from uuid import UUID

import pytest
from sqlalchemy.orm import Session

from licensing_kernel.db.engine import (
    create_session_factory,
    create_tables,
    init_engine_from_url,
    session_scope,
)
from licensing_kernel.db.immutability import register_immutability_listeners
from licensing_kernel.domain.clock import DeterministicClock
from licensing_kernel.domain.identity import ClientRef
from licensing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from licensing_kernel.models.client import Client
from licensing_kernel.services.catalog_service import CatalogService
from licensing_kernel.services.orchestrator import LicensingOrchestrator

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow_locks: mark test as potentially waiting for DB locks"
    )


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
    Capture licensing_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, orchestrator):
            orchestrator.purchase(...)
            logs = captured_logs()
            assert any(r["message"] == "contract_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("licensing_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _immutability_listeners():
    register_immutability_listeners()
    yield


@pytest.fixture
def engine(tmp_path):
    """SQLite database file with the full schema."""
    eng = init_engine_from_url(f"sqlite:///{tmp_path / 'licensing.db'}")
    create_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def session(session_factory, seed) -> Session:
    """
    Session for service-level tests.

    Services only flush; the session is rolled back at teardown. Opened
    after the seed data is committed.
    """
    sess = session_factory()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def clock():
    return DeterministicClock(NOW)


@pytest.fixture
def orchestrator(session_factory, clock, seed):
    return LicensingOrchestrator(session_factory, clock=clock)


# =============================================================================
# Seed data
# =============================================================================


@dataclass(frozen=True)
class SeedData:
    """Ids and refs of the seeded catalog."""

    alice: ClientRef
    bob: ClientRef
    acme: ClientRef
    ghost: ClientRef
    # 1000.00 with an active 0.10 discount (and lesser or inapplicable ones)
    finance_suite: UUID
    # 1200.00, no discounts
    education_pack: UUID
    # 1000.00, no discounts
    analytics: UUID
    # 500.00, no discounts
    office_tools: UUID


def _add_client(session: Session, ref: ClientRef, name: str) -> None:
    session.add(
        Client(
            kind=ref.kind.value,
            natural_key=ref.natural_key,
            display_name=name,
            email=f"{name.split()[0].lower()}@example.com",
            is_deleted=False,
        )
    )


@pytest.fixture
def seed(session_factory) -> SeedData:
    """Clients, products, and discounts committed before the test runs."""
    alice = ClientRef.individual("90010112345")
    bob = ClientRef.individual("85050554321")
    acme = ClientRef.company("0000123456")

    with session_scope(session_factory) as s:
        _add_client(s, alice, "Alice Nowak")
        _add_client(s, bob, "Bob Kowalski")
        _add_client(s, acme, "Acme Sp. z o.o.")
        s.flush()

        catalog = CatalogService(s)
        finance = catalog.create_product(
            "Finance Suite", Decimal("1000.00"), "2024.1", "finance"
        )
        education = catalog.create_product(
            "Education Pack", Decimal("1200.00"), "3.2", "education"
        )
        analytics = catalog.create_product(
            "Analytics", Decimal("1000.00"), "1.0", "finance"
        )
        office = catalog.create_product(
            "Office Tools", Decimal("500.00"), "7.0", "office"
        )

        year_start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        year_end = datetime(2025, 1, 1, tzinfo=timezone.utc)
        catalog.create_discount(
            finance.id, "Summer", Decimal("0.10"), year_start, year_end
        )
        catalog.create_discount(
            finance.id, "Loyalty", Decimal("0.05"), year_start, year_end
        )
        catalog.create_discount(
            finance.id,
            "Expired promo",
            Decimal("0.30"),
            datetime(2023, 1, 1, tzinfo=timezone.utc),
            year_start,
        )
        catalog.create_discount(
            finance.id,
            "Upcoming promo",
            Decimal("0.40"),
            NOW + timedelta(days=1),
            year_end,
        )
        cancelled = catalog.create_discount(
            finance.id, "Cancelled", Decimal("0.50"), year_start, year_end
        )
        catalog.deactivate_discount(cancelled.id)

    return SeedData(
        alice=alice,
        bob=bob,
        acme=acme,
        ghost=ClientRef.individual("00000000000"),
        finance_suite=finance.id,
        education_pack=education.id,
        analytics=analytics.id,
        office_tools=office.id,
    )


@pytest.fixture
def terms():
    """Default contract window: one year starting now, two years of support."""
    return {
        "start_date": NOW,
        "end_date": NOW + timedelta(days=365),
        "years_supported": 2,
    }

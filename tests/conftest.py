"""
Pytest fixtures for the inventory kernel test suite.

Provides:
- A session-scoped engine and schema
- Per-test sessions isolated by an outer transaction that is rolled back
- Master data (units, items, warehouses, locations) and wired services
- Structured-logging capture

Environment Variables:
- DATABASE_URL: connection URL for the test database.  Defaults to an
  in-memory SQLite database.  Tests marked ``postgres`` (real row locks and
  multi-session concurrency) are skipped unless this points at PostgreSQL.
"""

import json
import logging
import os
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import uuid4

import pytest
from sqlalchemy import text
from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base
from inventory_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.domain.movement import LineInput, MovementHeader, MovementType
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from inventory_kernel.models.master_data import (
    Item,
    ItemWarehouseConfig,
    Location,
    Unit,
    Warehouse,
    WarehouseType,
)
from inventory_kernel.selectors.balance_selector import BalanceSelector
from inventory_kernel.selectors.movement_selector import MovementSelector
from inventory_kernel.services.alert_service import AlertService
from inventory_kernel.services.auditor_service import AuditorService
from inventory_kernel.services.balance_applier import BalanceApplier
from inventory_kernel.services.movement_service import MovementService

# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()

DEFAULT_TEST_DATABASE_URL = "sqlite://"


def get_database_url() -> str:
    return os.environ.get("DATABASE_URL", DEFAULT_TEST_DATABASE_URL)


def _is_postgres_url(url: str) -> bool:
    return url.startswith("postgresql")


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "postgres: mark test as requiring PostgreSQL"
    )


def pytest_collection_modifyitems(config, items):
    if _is_postgres_url(get_database_url()):
        return
    skip_pg = pytest.mark.skip(reason="requires DATABASE_URL pointing at PostgreSQL")
    for item in items:
        if "postgres" in item.keywords:
            item.add_marker(skip_pg)


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
    Capture inventory_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, movement_service):
            movement_service.confirm(...)
            logs = captured_logs()
            assert any(r["message"] == "movement_confirmed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("inventory_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Session-scoped DB infrastructure (create engine + tables ONCE per suite)
# =============================================================================


@pytest.fixture(scope="session")
def db_engine():
    """Single engine for the entire test session."""
    eng = init_engine_from_url(
        get_database_url(), echo=False,
        pool_size=10, max_overflow=10, pool_timeout=10,
    )
    yield eng
    reset_engine()


@pytest.fixture(scope="session")
def db_tables(db_engine):
    """Create all tables once per session, drop once at end."""
    drop_tables()
    create_tables()
    yield
    drop_tables()


def _truncate_all_tables(engine):
    """Delete every row; used by tests that perform real commits."""
    with engine.connect() as conn:
        if engine.dialect.name == "postgresql":
            names = ", ".join(t.name for t in Base.metadata.sorted_tables)
            conn.execute(text(f"TRUNCATE {names} CASCADE"))
        else:
            for table in reversed(Base.metadata.sorted_tables):
                conn.execute(table.delete())
        conn.commit()


# =============================================================================
# Per-test session with automatic rollback
# =============================================================================


@pytest.fixture(scope="function")
def session(db_tables, db_engine) -> Generator[Session, None, None]:
    """Provide a database session for testing.

    The session joins an outer transaction on a dedicated connection.
    ``session.commit()`` inside a test releases a savepoint only; at teardown
    the outer transaction is rolled back, undoing every change.
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


@pytest.fixture(scope="function")
def pg_session_factory(db_engine, db_tables):
    """Session factory for multi-thread tests that need real commits.

    Each thread creates its own session.  All rows are deleted at teardown.
    """
    factory = get_session_factory()
    yield factory
    _truncate_all_tables(db_engine)


# =============================================================================
# Clock and actor
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock()


@pytest.fixture
def test_actor_id():
    return TEST_ACTOR_ID


# =============================================================================
# Master data
# =============================================================================


@pytest.fixture
def unit_each(session, test_actor_id) -> Unit:
    unit = Unit(code="UN", name="Unidad", created_by_id=test_actor_id)
    session.add(unit)
    session.flush()
    return unit


@pytest.fixture
def item(session, unit_each, test_actor_id) -> Item:
    """Office paper, 3-decimal quantities."""
    item = Item(
        code="OFC-001",
        name="Resma papel A4",
        unit_id=unit_each.id,
        standard_cost=Decimal("4.50"),
        created_by_id=test_actor_id,
    )
    session.add(item)
    session.flush()
    return item


@pytest.fixture
def second_item(session, unit_each, test_actor_id) -> Item:
    item = Item(
        code="CLN-002",
        name="Detergente 5L",
        unit_id=unit_each.id,
        created_by_id=test_actor_id,
    )
    session.add(item)
    session.flush()
    return item


def _warehouse(session, code, name, warehouse_type, actor_id) -> Warehouse:
    warehouse = Warehouse(
        code=code,
        name=name,
        warehouse_type=warehouse_type,
        created_by_id=actor_id,
    )
    warehouse.locations.append(
        Location(code="A1", description="Pasillo A, estante 1", created_by_id=actor_id)
    )
    session.add(warehouse)
    session.flush()
    return warehouse


@pytest.fixture
def central_warehouse(session, test_actor_id) -> Warehouse:
    return _warehouse(session, "WH-CEN", "Depósito Central", WarehouseType.CENTRAL, test_actor_id)


@pytest.fixture
def north_warehouse(session, test_actor_id) -> Warehouse:
    return _warehouse(session, "WH-NOR", "Depósito Norte", WarehouseType.SATELLITE, test_actor_id)


@pytest.fixture
def central_location(central_warehouse) -> Location:
    return central_warehouse.locations[0]


@pytest.fixture
def make_item_config(session, test_actor_id):
    """Factory for ItemWarehouseConfig thresholds."""

    def _make(item_id, warehouse_id, min_stock, reorder_point) -> ItemWarehouseConfig:
        config = ItemWarehouseConfig(
            item_id=item_id,
            warehouse_id=warehouse_id,
            min_stock=Decimal(min_stock),
            reorder_point=Decimal(reorder_point),
            created_by_id=test_actor_id,
        )
        session.add(config)
        session.flush()
        return config

    return _make


# =============================================================================
# Services and selectors
# =============================================================================


@pytest.fixture
def balance_applier(session) -> BalanceApplier:
    return BalanceApplier(session)


@pytest.fixture
def permissive_applier(session) -> BalanceApplier:
    return BalanceApplier(session, allow_negative_stock=True)


@pytest.fixture
def auditor_service(session, deterministic_clock) -> AuditorService:
    return AuditorService(session, clock=deterministic_clock)


@pytest.fixture
def movement_service(session, balance_applier, auditor_service, deterministic_clock) -> MovementService:
    return MovementService(
        session,
        balance_applier,
        auditor=auditor_service,
        clock=deterministic_clock,
    )


@pytest.fixture
def alert_service(session, deterministic_clock) -> AlertService:
    return AlertService(session, clock=deterministic_clock)


@pytest.fixture
def balance_selector(session) -> BalanceSelector:
    return BalanceSelector(session)


@pytest.fixture
def movement_selector(session) -> MovementSelector:
    return MovementSelector(session)


# =============================================================================
# Movement helpers
# =============================================================================


@pytest.fixture
def stock_in(movement_service, test_actor_id):
    """Create and confirm an INGRESS; returns the movement."""

    def _stock_in(item_id, warehouse_id, quantity, location_id=None, unit_cost=None):
        movement = movement_service.create(
            MovementHeader(
                movement_type=MovementType.INGRESS,
                destination_warehouse_id=warehouse_id,
                destination_location_id=location_id,
                reference="REM-0001",
            ),
            [LineInput(item_id=item_id, quantity=Decimal(quantity), unit_cost=unit_cost)],
            created_by=test_actor_id,
        )
        return movement_service.confirm(movement.id, approved_by=test_actor_id)

    return _stock_in

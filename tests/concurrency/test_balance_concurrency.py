"""
Concurrency tests for the balance store and movement lifecycle.

These need real row locks and independent connections, so they run only
against PostgreSQL (``DATABASE_URL=postgresql://...``).  Each thread uses its
own session and commits; tables are emptied at teardown.

Invariants tested:
- Confirm-once: N threads confirming the same DRAFT apply it exactly once.
- Non-negative stock: N concurrent egresses against a balance that covers
  only some of them never drive it below zero.
- Disjoint keys do not block each other.
"""

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from threading import Barrier
from uuid import uuid4

import pytest

from inventory_kernel.domain.movement import LineInput, MovementHeader, MovementType
from inventory_kernel.exceptions import InsufficientStockError, InvalidTransitionError
from inventory_kernel.models.master_data import Item, Unit, Warehouse
from inventory_kernel.selectors.balance_selector import BalanceSelector
from inventory_kernel.services.auditor_service import AuditorService
from inventory_kernel.services.balance_applier import BalanceApplier
from inventory_kernel.services.movement_service import MovementService

pytestmark = pytest.mark.postgres

THREADS = 8


def _service(session) -> MovementService:
    return MovementService(session, BalanceApplier(session), auditor=AuditorService(session))


@pytest.fixture
def master_data(pg_session_factory):
    actor = uuid4()
    with pg_session_factory() as session:
        unit = Unit(code="UN", name="Unidad", created_by_id=actor)
        session.add(unit)
        session.flush()
        items = [
            Item(code=f"OFC-{n:03d}", name=f"Item {n}", unit_id=unit.id, created_by_id=actor)
            for n in range(THREADS)
        ]
        warehouse = Warehouse(code="WH-CEN", name="Depósito Central", created_by_id=actor)
        session.add_all([*items, warehouse])
        session.commit()
        return {
            "actor": actor,
            "item_ids": [i.id for i in items],
            "warehouse_id": warehouse.id,
        }


def _create(factory, header, lines, actor):
    with factory() as session:
        movement = _service(session).create(header, lines, actor)
        session.commit()
        return movement.id


def _run_parallel(fn, count):
    barrier = Barrier(count)

    def _wrapped(index):
        barrier.wait()
        return fn(index)

    with ThreadPoolExecutor(max_workers=count) as pool:
        return list(pool.map(_wrapped, range(count)))


class TestConcurrentConfirm:

    def test_same_movement_confirmed_once(self, pg_session_factory, master_data):
        actor = master_data["actor"]
        item_id = master_data["item_ids"][0]
        warehouse_id = master_data["warehouse_id"]
        movement_id = _create(
            pg_session_factory,
            MovementHeader(movement_type=MovementType.INGRESS, destination_warehouse_id=warehouse_id),
            [LineInput(item_id, Decimal("10"))],
            actor,
        )

        def _confirm(_):
            with pg_session_factory() as session:
                try:
                    _service(session).confirm(movement_id, approved_by=actor)
                    session.commit()
                    return "confirmed"
                except InvalidTransitionError:
                    session.rollback()
                    return "rejected"

        outcomes = _run_parallel(_confirm, THREADS)

        assert outcomes.count("confirmed") == 1
        assert outcomes.count("rejected") == THREADS - 1
        with pg_session_factory() as session:
            assert BalanceSelector(session).get_quantity(item_id, warehouse_id) == Decimal("10")


class TestConcurrentEgress:

    def test_balance_never_negative(self, pg_session_factory, master_data):
        actor = master_data["actor"]
        item_id = master_data["item_ids"][0]
        warehouse_id = master_data["warehouse_id"]

        seed = _create(
            pg_session_factory,
            MovementHeader(movement_type=MovementType.INGRESS, destination_warehouse_id=warehouse_id),
            [LineInput(item_id, Decimal("3"))],
            actor,
        )
        with pg_session_factory() as session:
            _service(session).confirm(seed, approved_by=actor)
            session.commit()

        egress_ids = [
            _create(
                pg_session_factory,
                MovementHeader(movement_type=MovementType.EGRESS, origin_warehouse_id=warehouse_id),
                [LineInput(item_id, Decimal("1"))],
                actor,
            )
            for _ in range(THREADS)
        ]

        def _confirm(index):
            with pg_session_factory() as session:
                try:
                    _service(session).confirm(egress_ids[index], approved_by=actor)
                    session.commit()
                    return "confirmed"
                except InsufficientStockError:
                    session.rollback()
                    return "insufficient"

        outcomes = _run_parallel(_confirm, THREADS)

        assert outcomes.count("confirmed") == 3
        with pg_session_factory() as session:
            assert BalanceSelector(session).get_quantity(item_id, warehouse_id) == Decimal("0")

    def test_disjoint_keys_all_succeed(self, pg_session_factory, master_data):
        actor = master_data["actor"]
        warehouse_id = master_data["warehouse_id"]
        movement_ids = [
            _create(
                pg_session_factory,
                MovementHeader(
                    movement_type=MovementType.INGRESS, destination_warehouse_id=warehouse_id,
                ),
                [LineInput(item_id, Decimal("2"))],
                actor,
            )
            for item_id in master_data["item_ids"]
        ]

        def _confirm(index):
            with pg_session_factory() as session:
                _service(session).confirm(movement_ids[index], approved_by=actor)
                session.commit()
                return "confirmed"

        assert _run_parallel(_confirm, THREADS) == ["confirmed"] * THREADS
        with pg_session_factory() as session:
            selector = BalanceSelector(session)
            for item_id in master_data["item_ids"]:
                assert selector.get_quantity(item_id, warehouse_id) == Decimal("2")

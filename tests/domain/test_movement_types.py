"""
Tests for movement domain types (``inventory_kernel.domain.movement``).

Invariants tested:
- MOVEMENT_TRANSITIONS defines the only valid status transitions.
- CONFIRMED and CANCELED are terminal.
- State variants carry exactly the data of their state.
- StockKey ordering treats a NULL location as a distinct, lowest value.
- Frozen (immutable) guarantee on value objects.
"""

from dataclasses import FrozenInstanceError
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from inventory_kernel.domain.movement import (
    MOVEMENT_TRANSITIONS,
    TERMINAL_MOVEMENT_STATUSES,
    AdjustmentDirection,
    Canceled,
    Confirmed,
    Draft,
    Endpoint,
    MovementHeader,
    MovementStatus,
    MovementType,
    StockDelta,
    StockKey,
    can_transition,
    coerce_direction,
    coerce_movement_type,
)


class TestLifecycle:

    def test_draft_can_be_confirmed_or_canceled(self):
        assert MOVEMENT_TRANSITIONS[MovementStatus.DRAFT] == {
            MovementStatus.CONFIRMED,
            MovementStatus.CANCELED,
        }

    @pytest.mark.parametrize("status", sorted(TERMINAL_MOVEMENT_STATUSES))
    def test_terminal_states_have_no_transitions(self, status):
        assert MOVEMENT_TRANSITIONS[status] == frozenset()
        for target in MovementStatus:
            assert not can_transition(status, target)

    def test_every_status_has_an_entry(self):
        assert set(MOVEMENT_TRANSITIONS) == set(MovementStatus)

    def test_draft_to_draft_not_a_transition(self):
        assert not can_transition(MovementStatus.DRAFT, MovementStatus.DRAFT)


class TestStateVariants:

    def test_variants_report_their_status(self):
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert Draft().status is MovementStatus.DRAFT
        assert Confirmed(approved_by=uuid4(), confirmed_at=now).status is MovementStatus.CONFIRMED
        assert Canceled(canceled_at=now).status is MovementStatus.CANCELED

    def test_canceled_reason_optional(self):
        state = Canceled(canceled_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
        assert state.reason is None

    def test_variants_frozen(self):
        state = Confirmed(approved_by=uuid4(), confirmed_at=datetime.now(timezone.utc))
        with pytest.raises(FrozenInstanceError):
            state.approved_by = uuid4()


class TestCoercion:

    def test_movement_type_from_string(self):
        assert coerce_movement_type("TRANSFER") is MovementType.TRANSFER

    @pytest.mark.parametrize("value", ["transfer", "RETURN", None, ""])
    def test_unknown_movement_type_is_none(self, value):
        assert coerce_movement_type(value) is None

    @pytest.mark.parametrize("value", [None, "", "UP"])
    def test_absent_or_unknown_direction_is_none(self, value):
        assert coerce_direction(value) is None

    def test_direction_from_enum(self):
        assert coerce_direction(AdjustmentDirection.DECREASE) is AdjustmentDirection.DECREASE


class TestHeaderEndpoints:

    def test_origin_and_destination(self):
        wh, loc = uuid4(), uuid4()
        header = MovementHeader(
            movement_type=MovementType.TRANSFER,
            origin_warehouse_id=wh,
            origin_location_id=loc,
        )
        assert header.origin == Endpoint(wh, loc)
        assert header.destination is None

    def test_location_without_warehouse_is_no_endpoint(self):
        header = MovementHeader(movement_type=MovementType.INGRESS, destination_location_id=uuid4())
        assert header.destination is None


class TestStockKey:

    def test_null_location_is_distinct_key(self):
        item, wh = uuid4(), uuid4()
        assert StockKey(item, wh, None) != StockKey(item, wh, uuid4())

    def test_sort_key_is_total_order(self):
        item = UUID("00000000-0000-0000-0000-000000000001")
        wh = UUID("00000000-0000-0000-0000-000000000002")
        loc = UUID("00000000-0000-0000-0000-000000000003")
        keys = [StockKey(item, wh, loc), StockKey(item, wh, None)]
        assert sorted(keys, key=StockKey.sort_key) == [
            StockKey(item, wh, None),
            StockKey(item, wh, loc),
        ]

    def test_delta_key(self):
        item, wh = uuid4(), uuid4()
        delta = StockDelta(item, wh, None, Decimal("1"))
        assert delta.key == StockKey(item, wh, None)

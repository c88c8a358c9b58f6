"""
Movement domain types (``inventory_kernel.domain.movement``).

Responsibility
--------------
Pure value objects for the stock movement ledger: movement kinds, the
movement lifecycle state machine, header/line inputs, balance keys and
signed stock deltas.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Lifecycle state machine -- ``MOVEMENT_TRANSITIONS`` defines the only valid
  status transitions.  CONFIRMED and CANCELED are terminal.
* Movement state is a closed variant: ``Draft | Confirmed | Canceled``.  The
  confirmed and canceled variants carry the data that only exists in that
  state (approver and confirmation time, cancellation time and reason).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Union
from uuid import UUID


class MovementType(str, Enum):
    """Kinds of stock movement."""

    INGRESS = "INGRESS"
    EGRESS = "EGRESS"
    TRANSFER = "TRANSFER"
    ADJUSTMENT = "ADJUSTMENT"


class MovementStatus(str, Enum):
    """Movement lifecycle states."""

    DRAFT = "DRAFT"
    CONFIRMED = "CONFIRMED"
    CANCELED = "CANCELED"


class AdjustmentDirection(str, Enum):
    """Sign of an ADJUSTMENT movement."""

    INCREASE = "INCREASE"
    DECREASE = "DECREASE"


MOVEMENT_TRANSITIONS: dict[MovementStatus, frozenset[MovementStatus]] = {
    MovementStatus.DRAFT: frozenset({
        MovementStatus.CONFIRMED,
        MovementStatus.CANCELED,
    }),
    MovementStatus.CONFIRMED: frozenset(),
    MovementStatus.CANCELED: frozenset(),
}

TERMINAL_MOVEMENT_STATUSES: frozenset[MovementStatus] = frozenset({
    MovementStatus.CONFIRMED,
    MovementStatus.CANCELED,
})


def can_transition(current: MovementStatus, target: MovementStatus) -> bool:
    """True iff ``current -> target`` is an edge of the lifecycle."""
    return target in MOVEMENT_TRANSITIONS[current]


def coerce_movement_type(value: MovementType | str | None) -> MovementType | None:
    """Map a raw value to ``MovementType``; None for anything unrecognised."""
    if isinstance(value, MovementType):
        return value
    try:
        return MovementType(value)
    except ValueError:
        return None


def coerce_direction(
    value: AdjustmentDirection | str | None,
) -> AdjustmentDirection | None:
    """Map a raw value to ``AdjustmentDirection``; None if absent or unknown."""
    if isinstance(value, AdjustmentDirection):
        return value
    if not value:
        return None
    try:
        return AdjustmentDirection(value)
    except ValueError:
        return None


# =========================================================================
# Movement state variants
# =========================================================================


@dataclass(frozen=True)
class Draft:
    """Movement recorded, no balance effect yet."""

    status: ClassVar[MovementStatus] = MovementStatus.DRAFT


@dataclass(frozen=True)
class Confirmed:
    """Movement applied to balances. Terminal."""

    status: ClassVar[MovementStatus] = MovementStatus.CONFIRMED

    approved_by: UUID
    confirmed_at: datetime


@dataclass(frozen=True)
class Canceled:
    """Movement withdrawn before confirmation. Terminal."""

    status: ClassVar[MovementStatus] = MovementStatus.CANCELED

    canceled_at: datetime
    reason: str | None = None


MovementState = Union[Draft, Confirmed, Canceled]


# =========================================================================
# Inputs
# =========================================================================


@dataclass(frozen=True)
class Endpoint:
    """A (warehouse, location-or-none) pair."""

    warehouse_id: UUID
    location_id: UUID | None = None


@dataclass(frozen=True)
class MovementHeader:
    """
    Everything about a movement except its lines.

    ``movement_type`` and ``adjustment_direction`` accept raw strings so that
    request payloads can be validated before they are known to be legal.
    """

    movement_type: MovementType | str
    adjustment_direction: AdjustmentDirection | str | None = None
    origin_warehouse_id: UUID | None = None
    origin_location_id: UUID | None = None
    destination_warehouse_id: UUID | None = None
    destination_location_id: UUID | None = None
    reference: str | None = None
    reason: str | None = None

    @property
    def origin(self) -> Endpoint | None:
        if self.origin_warehouse_id is None:
            return None
        return Endpoint(self.origin_warehouse_id, self.origin_location_id)

    @property
    def destination(self) -> Endpoint | None:
        if self.destination_warehouse_id is None:
            return None
        return Endpoint(self.destination_warehouse_id, self.destination_location_id)


@dataclass(frozen=True)
class LineInput:
    """One item + quantity (+ optional cost) entry of a movement."""

    item_id: UUID | None
    quantity: Decimal | None
    unit_cost: Decimal | None = None
    notes: str | None = None


# =========================================================================
# Balance keys and deltas
# =========================================================================


@dataclass(frozen=True)
class StockKey:
    """Identity of one balance row."""

    item_id: UUID
    warehouse_id: UUID
    location_id: UUID | None = None

    def sort_key(self) -> tuple[str, str, str]:
        """Total order used to acquire row locks without deadlocking."""
        return (
            str(self.item_id),
            str(self.warehouse_id),
            "" if self.location_id is None else str(self.location_id),
        )


@dataclass(frozen=True)
class StockDelta:
    """A signed quantity change to apply to one balance key."""

    item_id: UUID
    warehouse_id: UUID
    location_id: UUID | None
    delta: Decimal

    @property
    def key(self) -> StockKey:
        return StockKey(self.item_id, self.warehouse_id, self.location_id)

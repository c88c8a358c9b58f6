"""
Delta computer (``inventory_kernel.domain.deltas``).

Turns a movement into the signed per-location quantity changes it implies.
Pure and deterministic: deltas follow line order, and a TRANSFER line
yields its origin delta before its destination delta.

    INGRESS     +q at destination
    EGRESS      -q at origin
    TRANSFER    -q at origin, +q at destination
    ADJUSTMENT  +q (INCREASE) or -q (DECREASE) at origin
"""

from __future__ import annotations

from collections import OrderedDict
from decimal import Decimal
from typing import Iterable, Sequence

from inventory_kernel.domain.movement import (
    AdjustmentDirection,
    Endpoint,
    LineInput,
    MovementHeader,
    MovementType,
    StockDelta,
    StockKey,
    coerce_direction,
)
from inventory_kernel.domain.validation import validate_movement
from inventory_kernel.domain.values import round_quantity


def _delta(line: LineInput, endpoint: Endpoint, amount: Decimal) -> StockDelta:
    return StockDelta(
        item_id=line.item_id,
        warehouse_id=endpoint.warehouse_id,
        location_id=endpoint.location_id,
        delta=amount,
    )


def compute_deltas(
    header: MovementHeader,
    lines: Sequence[LineInput],
) -> tuple[StockDelta, ...]:
    """
    Compute the stock deltas of a movement.

    The validator runs first; a persisted movement is never assumed to still
    be structurally valid.

    Raises:
        MovementValidationError subclass if the movement is invalid.
    """
    movement_type = validate_movement(header, lines)
    origin, destination = header.origin, header.destination

    deltas: list[StockDelta] = []
    for line in lines:
        quantity = round_quantity(line.quantity)

        if movement_type is MovementType.INGRESS:
            deltas.append(_delta(line, destination, quantity))
        elif movement_type is MovementType.EGRESS:
            deltas.append(_delta(line, origin, -quantity))
        elif movement_type is MovementType.TRANSFER:
            deltas.append(_delta(line, origin, -quantity))
            deltas.append(_delta(line, destination, quantity))
        else:
            direction = coerce_direction(header.adjustment_direction)
            sign = 1 if direction is AdjustmentDirection.INCREASE else -1
            deltas.append(_delta(line, origin, quantity * sign))

    return tuple(deltas)


def net_deltas(deltas: Iterable[StockDelta]) -> dict[StockKey, Decimal]:
    """Sum deltas per balance key, preserving first-seen key order."""
    totals: OrderedDict[StockKey, Decimal] = OrderedDict()
    for delta in deltas:
        totals[delta.key] = totals.get(delta.key, Decimal("0")) + delta.delta
    return dict(totals)

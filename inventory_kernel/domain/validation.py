"""
Movement validator (``inventory_kernel.domain.validation``).

Pure structural checks on a proposed movement, run before anything is
persisted and again inside the delta computer before any balance changes.
No I/O; safe to call from request handlers for pre-submission checks.

Rules, in order:
    1. At least one line                          -> EmptyMovementError
    2. Every line has an item and quantity > 0,   -> InvalidLineError
       and any unit cost is a finite number >= 0
    3. Endpoints required by the movement type    -> Missing*/SameWarehouse*
       and an adjustment direction                -> MissingDirectionError
    4. Type is one of MovementType                -> UnsupportedMovementTypeError
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Sequence

from inventory_kernel.domain.movement import (
    LineInput,
    MovementHeader,
    MovementType,
    coerce_direction,
    coerce_movement_type,
)
from inventory_kernel.domain.values import round_quantity, to_decimal
from inventory_kernel.exceptions import (
    EmptyMovementError,
    InvalidLineError,
    MissingDestinationError,
    MissingDirectionError,
    MissingEndpointError,
    MissingOriginError,
    MissingReasonError,
    SameWarehouseTransferError,
    UnsupportedMovementTypeError,
)


def _is_positive(quantity: object) -> bool:
    # Positive at the stored scale: 0.0004 rounds to zero and is rejected.
    if quantity is None or isinstance(quantity, (bool, float)):
        return False
    try:
        return round_quantity(Decimal(str(quantity))) > 0
    except (InvalidOperation, ValueError):
        return False


def _is_valid_cost(unit_cost: object) -> bool:
    if unit_cost is None:
        return True
    try:
        cost = to_decimal(unit_cost)
    except (InvalidOperation, TypeError, ValueError):
        return False
    return cost.is_finite() and cost >= 0


def validate_lines(lines: Sequence[LineInput]) -> None:
    """Rules 1 and 2: non-empty, every line has an item, a positive quantity
    and, when given, a non-negative unit cost."""
    if not lines:
        raise EmptyMovementError()

    for index, line in enumerate(lines):
        if not line.item_id or not _is_positive(line.quantity):
            raise InvalidLineError(
                line_index=index,
                item_id=None if line.item_id is None else str(line.item_id),
                quantity=None if line.quantity is None else str(line.quantity),
            )
        if not _is_valid_cost(line.unit_cost):
            raise InvalidLineError(
                line_index=index,
                item_id=str(line.item_id),
                quantity=str(line.quantity),
                unit_cost=repr(line.unit_cost),
            )


def validate_movement(header: MovementHeader, lines: Sequence[LineInput]) -> MovementType:
    """
    Check a movement against the structural rules.

    Returns:
        The movement type, coerced to ``MovementType``.

    Raises:
        MovementValidationError subclass describing the first rule broken.
    """
    validate_lines(lines)

    movement_type = coerce_movement_type(header.movement_type)

    if movement_type is MovementType.INGRESS:
        if not header.destination_warehouse_id:
            raise MissingDestinationError(movement_type.value)
    elif movement_type is MovementType.EGRESS:
        if not header.origin_warehouse_id:
            raise MissingOriginError(movement_type.value)
    elif movement_type is MovementType.TRANSFER:
        if not header.origin_warehouse_id:
            raise MissingEndpointError("origin")
        if not header.destination_warehouse_id:
            raise MissingEndpointError("destination")
        if header.origin_warehouse_id == header.destination_warehouse_id:
            raise SameWarehouseTransferError(str(header.origin_warehouse_id))
    elif movement_type is MovementType.ADJUSTMENT:
        if not header.origin_warehouse_id:
            raise MissingOriginError(movement_type.value)
        if coerce_direction(header.adjustment_direction) is None:
            raise MissingDirectionError()
    else:
        raise UnsupportedMovementTypeError(str(header.movement_type))

    return movement_type


def validate_submission(header: MovementHeader, lines: Sequence[LineInput]) -> MovementType:
    """
    Validation applied when a caller submits a new movement.

    Adds the rule that an ADJUSTMENT carries a reason.  Stored movements are
    re-validated on confirmation with ``validate_movement`` only.
    """
    movement_type = validate_movement(header, lines)
    if movement_type is MovementType.ADJUSTMENT and not (header.reason or "").strip():
        raise MissingReasonError(movement_type.value)
    return movement_type

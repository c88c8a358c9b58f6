"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (request handlers, approval workflows, batch jobs) must be able to
tell a malformed movement from a movement in the wrong state from a movement
that would drive stock negative -- without parsing message strings.

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        service.confirm(movement_id, approved_by=actor_id)
    except InsufficientStockError as e:
        return {"error": e.code, "available": e.available, "requested": e.requested}
    except MovementStateError as e:
        return {"error": e.code, "movement_id": e.movement_id}

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- MovementValidationError          structural, caller fixes the input
    |   +-- EmptyMovementError
    |   +-- InvalidLineError
    |   +-- MissingOriginError
    |   +-- MissingDestinationError
    |   +-- MissingEndpointError
    |   +-- SameWarehouseTransferError
    |   +-- MissingDirectionError
    |   +-- MissingReasonError
    |   +-- UnsupportedMovementTypeError
    |
    +-- MovementStateError               movement not in the expected state
    |   +-- MovementNotFoundError
    |   +-- InvalidTransitionError
    |   +-- AlreadyCanceledError
    |   +-- ConfirmedImmutableError
    |
    +-- StockInvariantError
    |   +-- InsufficientStockError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | EMPTY_MOVEMENT              | Movement has no lines
                | INVALID_LINE                | Line without item, qty <= 0 or bad cost
                | MISSING_ORIGIN              | EGRESS/ADJUSTMENT without origin
                | MISSING_DESTINATION         | INGRESS without destination
                | MISSING_ENDPOINT            | TRANSFER missing origin or destination
                | SAME_WAREHOUSE_TRANSFER     | TRANSFER origin == destination
                | MISSING_DIRECTION           | ADJUSTMENT without INCREASE/DECREASE
                | MISSING_REASON              | ADJUSTMENT without a reason
                | UNSUPPORTED_MOVEMENT_TYPE   | Unknown movement type
----------------|-----------------------------|-----------------------------------------
State           | NOT_FOUND                   | Movement ID doesn't exist
                | INVALID_TRANSITION          | Confirming a non-draft movement
                | ALREADY_CANCELED            | Canceling a canceled movement
                | CONFIRMED_IMMUTABLE         | Canceling a confirmed movement
----------------|-----------------------------|-----------------------------------------
Invariant       | INSUFFICIENT_STOCK          | Delta would drive a balance below zero
----------------|-----------------------------|-----------------------------------------
Config          | INVALID_CONFIGURATION       | Unparseable configuration value

Infrastructure errors (SQLAlchemy OperationalError, IntegrityError on a
concurrent insert of the same balance key) are NOT wrapped.  They propagate
unchanged so the caller's retry policy can see them.
===============================================================================
"""

from decimal import Decimal


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


# Validation (structural) exceptions


class MovementValidationError(InventoryKernelError):
    """Base exception for structurally invalid movements."""

    code: str = "MOVEMENT_VALIDATION_ERROR"


class EmptyMovementError(MovementValidationError):
    """Movement has no lines."""

    code: str = "EMPTY_MOVEMENT"

    def __init__(self):
        super().__init__("Movement must include at least one line")


class InvalidLineError(MovementValidationError):
    """A movement line lacks an item, has a non-positive quantity or a bad cost."""

    code: str = "INVALID_LINE"

    def __init__(
        self,
        line_index: int,
        item_id: str | None,
        quantity: str | None,
        unit_cost: str | None = None,
    ):
        self.line_index = line_index
        self.item_id = item_id
        self.quantity = quantity
        self.unit_cost = unit_cost
        if unit_cost is not None:
            message = f"Movement line {line_index} has an invalid unit cost: {unit_cost}"
        else:
            message = f"Movement line {line_index} requires an item and a positive quantity"
        super().__init__(message)


class MissingOriginError(MovementValidationError):
    """EGRESS or ADJUSTMENT movement without an origin warehouse."""

    code: str = "MISSING_ORIGIN"

    def __init__(self, movement_type: str):
        self.movement_type = movement_type
        super().__init__(f"{movement_type} requires an origin warehouse")


class MissingDestinationError(MovementValidationError):
    """INGRESS movement without a destination warehouse."""

    code: str = "MISSING_DESTINATION"

    def __init__(self, movement_type: str):
        self.movement_type = movement_type
        super().__init__(f"{movement_type} requires a destination warehouse")


class MissingEndpointError(MovementValidationError):
    """TRANSFER movement missing its origin or destination warehouse."""

    code: str = "MISSING_ENDPOINT"

    def __init__(self, missing: str):
        self.missing = missing
        super().__init__(
            f"Transfer requires origin and destination warehouses (missing {missing})"
        )


class SameWarehouseTransferError(MovementValidationError):
    """TRANSFER movement whose origin and destination warehouses are equal."""

    code: str = "SAME_WAREHOUSE_TRANSFER"

    def __init__(self, warehouse_id: str):
        self.warehouse_id = warehouse_id
        super().__init__(
            "Transfer requires different origin and destination warehouses"
        )


class MissingDirectionError(MovementValidationError):
    """ADJUSTMENT movement without an INCREASE/DECREASE direction."""

    code: str = "MISSING_DIRECTION"

    def __init__(self):
        super().__init__("Adjustment requires a direction")


class MissingReasonError(MovementValidationError):
    """ADJUSTMENT movement submitted without a reason."""

    code: str = "MISSING_REASON"

    def __init__(self, movement_type: str):
        self.movement_type = movement_type
        super().__init__(f"{movement_type} requires a reason")


class UnsupportedMovementTypeError(MovementValidationError):
    """Movement type is not one of the supported kinds."""

    code: str = "UNSUPPORTED_MOVEMENT_TYPE"

    def __init__(self, movement_type: str):
        self.movement_type = movement_type
        super().__init__(f"Unsupported movement type: {movement_type}")


# State exceptions


class MovementStateError(InventoryKernelError):
    """Base exception for movements that are not in the expected state."""

    code: str = "MOVEMENT_STATE_ERROR"


class MovementNotFoundError(MovementStateError):
    """Movement with given ID was not found."""

    code: str = "NOT_FOUND"

    def __init__(self, movement_id: str):
        self.movement_id = movement_id
        super().__init__(f"Movement not found: {movement_id}")


class InvalidTransitionError(MovementStateError):
    """Requested status transition is not legal from the current status."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, movement_id: str, current_status: str, target_status: str):
        self.movement_id = movement_id
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"Only draft movements can be confirmed "
            f"(movement {movement_id} is {current_status})"
        )


class AlreadyCanceledError(MovementStateError):
    """Movement has already been canceled."""

    code: str = "ALREADY_CANCELED"

    def __init__(self, movement_id: str):
        self.movement_id = movement_id
        super().__init__(f"Movement already canceled: {movement_id}")


class ConfirmedImmutableError(MovementStateError):
    """Confirmed movements cannot be canceled."""

    code: str = "CONFIRMED_IMMUTABLE"

    def __init__(self, movement_id: str):
        self.movement_id = movement_id
        super().__init__(
            f"Confirmed movements cannot be canceled (movement {movement_id})"
        )


# Invariant exceptions


class StockInvariantError(InventoryKernelError):
    """Base exception for stock balance invariant violations."""

    code: str = "STOCK_INVARIANT_ERROR"


class InsufficientStockError(StockInvariantError):
    """
    Applying a delta would leave a balance below zero.

    The whole delta list is rolled back; no balance row changes.
    """

    code: str = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        item_id: str,
        warehouse_id: str,
        location_id: str | None,
        available: Decimal,
        requested: Decimal,
    ):
        self.item_id = item_id
        self.warehouse_id = warehouse_id
        self.location_id = location_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Movement would result in negative stock for item {item_id} "
            f"at warehouse {warehouse_id}: available {available}, "
            f"requested {requested}"
        )


# Configuration exceptions


class ConfigurationError(InventoryKernelError):
    """A configuration value could not be parsed or is out of range."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, key: str, value: object, reason: str):
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid configuration {key}={value!r}: {reason}")

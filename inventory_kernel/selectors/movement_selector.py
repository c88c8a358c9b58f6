"""
Module: inventory_kernel.selectors.movement_selector
Responsibility: Read access to movements and their lines.
Architecture position: Kernel > Selectors.

Listing is newest first.  The ``warehouse_id`` filter matches a movement
whose origin OR destination is that warehouse; ``item_id`` matches a
movement with at least one line for that item.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import or_, select

from inventory_kernel.domain.movement import (
    AdjustmentDirection,
    MovementState,
    MovementStatus,
    MovementType,
)
from inventory_kernel.models.movement import Movement, MovementLine
from inventory_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class MovementLineDTO:
    line_no: int
    item_id: UUID
    quantity: Decimal
    unit_cost: Decimal | None
    total_cost: Decimal | None
    notes: str | None


@dataclass(frozen=True)
class MovementDTO:
    """Read model of a movement and its lines."""

    id: UUID
    movement_type: MovementType
    status: MovementStatus
    state: MovementState
    adjustment_direction: AdjustmentDirection | None
    origin_warehouse_id: UUID | None
    origin_location_id: UUID | None
    destination_warehouse_id: UUID | None
    destination_location_id: UUID | None
    reference: str | None
    reason: str | None
    created_by_id: UUID
    approved_by_id: UUID | None
    created_at: datetime
    confirmed_at: datetime | None
    canceled_at: datetime | None
    lines: tuple[MovementLineDTO, ...]

    @property
    def total_cost(self) -> Decimal | None:
        """Sum of line totals, or None if no line carries a cost."""
        costs = [line.total_cost for line in self.lines if line.total_cost is not None]
        return sum(costs, Decimal("0")) if costs else None


class MovementSelector(BaseSelector[Movement]):
    """Queries over movements."""

    def _to_dto(self, movement: Movement) -> MovementDTO:
        return MovementDTO(
            id=movement.id,
            movement_type=movement.movement_type,
            status=movement.status,
            state=movement.state,
            adjustment_direction=movement.adjustment_direction,
            origin_warehouse_id=movement.origin_warehouse_id,
            origin_location_id=movement.origin_location_id,
            destination_warehouse_id=movement.destination_warehouse_id,
            destination_location_id=movement.destination_location_id,
            reference=movement.reference,
            reason=movement.reason,
            created_by_id=movement.created_by_id,
            approved_by_id=movement.approved_by_id,
            created_at=movement.created_at,
            confirmed_at=movement.confirmed_at,
            canceled_at=movement.canceled_at,
            lines=tuple(
                MovementLineDTO(
                    line_no=line.line_no,
                    item_id=line.item_id,
                    quantity=line.quantity,
                    unit_cost=line.unit_cost,
                    total_cost=line.total_cost,
                    notes=line.notes,
                )
                for line in movement.lines
            ),
        )

    def get(self, movement_id: UUID) -> MovementDTO | None:
        movement = self.session.get(Movement, movement_id)
        return None if movement is None else self._to_dto(movement)

    def list_movements(
        self,
        movement_type: MovementType | None = None,
        status: MovementStatus | None = None,
        warehouse_id: UUID | None = None,
        item_id: UUID | None = None,
        created_by_id: UUID | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
    ) -> list[MovementDTO]:
        """
        Movements matching every given filter, newest first.

        ``created_from`` and ``created_to`` are inclusive bounds on created_at.
        """
        stmt = select(Movement)
        if movement_type is not None:
            stmt = stmt.where(Movement.movement_type == MovementType(movement_type))
        if status is not None:
            stmt = stmt.where(Movement.status == MovementStatus(status))
        if warehouse_id is not None:
            stmt = stmt.where(or_(
                Movement.origin_warehouse_id == warehouse_id,
                Movement.destination_warehouse_id == warehouse_id,
            ))
        if item_id is not None:
            stmt = stmt.where(Movement.lines.any(MovementLine.item_id == item_id))
        if created_by_id is not None:
            stmt = stmt.where(Movement.created_by_id == created_by_id)
        if created_from is not None:
            stmt = stmt.where(Movement.created_at >= created_from)
        if created_to is not None:
            stmt = stmt.where(Movement.created_at <= created_to)

        stmt = stmt.order_by(Movement.created_at.desc(), Movement.id)
        return [self._to_dto(m) for m in self.session.execute(stmt).scalars()]

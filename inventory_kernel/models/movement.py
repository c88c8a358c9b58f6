"""
Module: inventory_kernel.models.movement
Responsibility: ORM persistence for movements (the unit of stock change) and
    their ordered lines.
Architecture position: Kernel > Models.  May import from db/ and the pure
    domain types only.

Invariants enforced:
    - status moves only along MOVEMENT_TRANSITIONS (DRAFT -> CONFIRMED,
      DRAFT -> CANCELED); enforced by MovementService.
    - Lines are ordered by line_no and immutable once the movement exists.
    - quantity is Numeric(18, 3) and positive; costs are Numeric(18, 2).

Audit relevance:
    ``to_snapshot()`` is the JSON-safe representation written to the audit
    log before and after each state change.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import TrackedBase, UUIDString
from inventory_kernel.db.types import Cost, Quantity
from inventory_kernel.domain.movement import (
    AdjustmentDirection,
    Canceled,
    Confirmed,
    Draft,
    LineInput,
    MovementHeader,
    MovementState,
    MovementStatus,
    MovementType,
)


class Movement(TrackedBase):
    """
    Movement header.

    Contract:
        Created in DRAFT with its lines.  Confirmation applies its deltas to
        the balance store exactly once; cancellation is only possible from
        DRAFT and never touches balances.  ``created_by_id`` is the creator.

    Guarantees:
        - ``state`` returns the closed variant matching ``status``.
        - ``header`` / ``line_inputs`` rebuild the pure inputs consumed by the
          validator and delta computer.
    """

    __tablename__ = "movements"

    __table_args__ = (
        Index("idx_movement_status", "status"),
        Index("idx_movement_type", "movement_type"),
        Index("idx_movement_origin", "origin_warehouse_id"),
        Index("idx_movement_destination", "destination_warehouse_id"),
        Index("idx_movement_created_at", "created_at"),
    )

    movement_type: Mapped[MovementType] = mapped_column(
        SAEnum(MovementType, native_enum=False, length=20),
        nullable=False,
    )
    status: Mapped[MovementStatus] = mapped_column(
        SAEnum(MovementStatus, native_enum=False, length=20),
        nullable=False,
        default=MovementStatus.DRAFT,
    )
    adjustment_direction: Mapped[AdjustmentDirection | None] = mapped_column(
        SAEnum(AdjustmentDirection, native_enum=False, length=20),
        nullable=True,
    )

    origin_warehouse_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=True,
    )
    origin_location_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("locations.id"), nullable=True,
    )
    destination_warehouse_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=True,
    )
    destination_location_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("locations.id"), nullable=True,
    )

    reference: Mapped[str | None] = mapped_column(String(200), nullable=True)
    reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    approved_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    confirmed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    canceled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    lines: Mapped[list["MovementLine"]] = relationship(
        back_populates="movement",
        cascade="all, delete-orphan",
        order_by="MovementLine.line_no",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<Movement {self.id} type={self.movement_type.value} "
            f"status={self.status.value}>"
        )

    @property
    def is_draft(self) -> bool:
        return self.status == MovementStatus.DRAFT

    @property
    def is_confirmed(self) -> bool:
        return self.status == MovementStatus.CONFIRMED

    @property
    def is_canceled(self) -> bool:
        return self.status == MovementStatus.CANCELED

    @property
    def state(self) -> MovementState:
        """The lifecycle state as a closed variant."""
        if self.status == MovementStatus.CONFIRMED:
            return Confirmed(
                approved_by=self.approved_by_id,
                confirmed_at=self.confirmed_at,
            )
        if self.status == MovementStatus.CANCELED:
            return Canceled(canceled_at=self.canceled_at, reason=self.reason)
        return Draft()

    @property
    def header(self) -> MovementHeader:
        return MovementHeader(
            movement_type=self.movement_type,
            adjustment_direction=self.adjustment_direction,
            origin_warehouse_id=self.origin_warehouse_id,
            origin_location_id=self.origin_location_id,
            destination_warehouse_id=self.destination_warehouse_id,
            destination_location_id=self.destination_location_id,
            reference=self.reference,
            reason=self.reason,
        )

    @property
    def line_inputs(self) -> tuple[LineInput, ...]:
        return tuple(
            LineInput(
                item_id=line.item_id,
                quantity=line.quantity,
                unit_cost=line.unit_cost,
                notes=line.notes,
            )
            for line in self.lines
        )

    def to_snapshot(self) -> dict[str, Any]:
        """JSON-safe representation for the audit log."""

        def _s(value: Any) -> str | None:
            return None if value is None else str(value)

        return {
            "id": _s(self.id),
            "movement_type": self.movement_type.value,
            "status": self.status.value,
            "adjustment_direction": (
                self.adjustment_direction.value if self.adjustment_direction else None
            ),
            "origin_warehouse_id": _s(self.origin_warehouse_id),
            "origin_location_id": _s(self.origin_location_id),
            "destination_warehouse_id": _s(self.destination_warehouse_id),
            "destination_location_id": _s(self.destination_location_id),
            "reference": self.reference,
            "reason": self.reason,
            "created_by_id": _s(self.created_by_id),
            "approved_by_id": _s(self.approved_by_id),
            "confirmed_at": self.confirmed_at.isoformat() if self.confirmed_at else None,
            "canceled_at": self.canceled_at.isoformat() if self.canceled_at else None,
            "lines": [line.to_snapshot() for line in self.lines],
        }


class MovementLine(TrackedBase):
    """
    One item + quantity entry of a movement.

    Guarantees:
        - quantity > 0 (CHECK constraint, also enforced by the validator).
        - total_cost == unit_cost x quantity whenever unit_cost is present.
    """

    __tablename__ = "movement_lines"

    __table_args__ = (
        UniqueConstraint("movement_id", "line_no", name="uq_movement_line_no"),
        CheckConstraint("quantity > 0", name="ck_movement_line_quantity_positive"),
        Index("idx_movement_line_item", "item_id"),
    )

    movement_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("movements.id"), nullable=False,
    )
    line_no: Mapped[int] = mapped_column(Integer, nullable=False)

    item_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("items.id"), nullable=False,
    )
    quantity: Mapped[Quantity] = mapped_column(nullable=False)
    unit_cost: Mapped[Cost | None] = mapped_column(nullable=True)
    total_cost: Mapped[Cost | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    movement: Mapped["Movement"] = relationship(back_populates="lines")

    def __repr__(self) -> str:
        return f"<MovementLine {self.line_no} item={self.item_id} qty={self.quantity}>"

    def to_snapshot(self) -> dict[str, Any]:
        def _s(value: Any) -> str | None:
            return None if value is None else str(value)

        return {
            "line_no": self.line_no,
            "item_id": _s(self.item_id),
            "quantity": _s(self.quantity),
            "unit_cost": _s(self.unit_cost),
            "total_cost": _s(self.total_cost),
            "notes": self.notes,
        }

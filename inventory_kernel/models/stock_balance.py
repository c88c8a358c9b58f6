"""
Module: inventory_kernel.models.stock_balance
Responsibility: ORM persistence for the balance store -- the current quantity
    of one item at one (warehouse, location-or-null).
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - At most one row per (item_id, warehouse_id, location_id).  A NULL
      location is a real key value: the constraint is NULLS NOT DISTINCT on
      PostgreSQL 15+.
    - quantity is Numeric(18, 3).
    - Rows are created lazily by BalanceApplier and never deleted.
    - Non-negative quantity is enforced by BalanceApplier (it is
      configurable, so it is not a CHECK constraint).

Failure modes:
    - IntegrityError when two transactions insert the same new key
      concurrently.  Propagated to the caller, who retries.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString
from inventory_kernel.db.types import Quantity
from inventory_kernel.domain.movement import StockKey


class StockBalance(Base):
    """
    Quantity ledger row for one balance key.

    Contract:
        Mutated only by BalanceApplier, under a row lock, inside the
        transaction that confirms a movement.
    """

    __tablename__ = "stock_balances"

    __table_args__ = (
        UniqueConstraint(
            "item_id", "warehouse_id", "location_id",
            name="uq_stock_balance_key",
            postgresql_nulls_not_distinct=True,
        ),
        Index("idx_stock_balance_item_warehouse", "item_id", "warehouse_id"),
        Index("idx_stock_balance_warehouse", "warehouse_id"),
    )

    item_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("items.id"), nullable=False,
    )
    warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=False,
    )
    location_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("locations.id"), nullable=True,
    )

    quantity: Mapped[Quantity] = mapped_column(nullable=False, default=Decimal("0"))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def key(self) -> StockKey:
        return StockKey(self.item_id, self.warehouse_id, self.location_id)

    def __repr__(self) -> str:
        return (
            f"<StockBalance item={self.item_id} warehouse={self.warehouse_id} "
            f"location={self.location_id} qty={self.quantity}>"
        )

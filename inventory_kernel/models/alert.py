"""
Module: inventory_kernel.models.alert
Responsibility: ORM persistence for the most recently computed set of stock
    alerts.
Architecture position: Kernel > Models.  May import from db/ and pure domain
    types only.

Invariants enforced:
    - The table holds exactly one computation: AlertService deletes every
      prior row before inserting a fresh set.
    - At most one alert per (item, warehouse) within a computation.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString
from inventory_kernel.db.types import Quantity
from inventory_kernel.domain.alerts import AlertType, StockAlert


class Alert(Base):
    """A persisted stock alert for one (item, warehouse)."""

    __tablename__ = "alerts"

    __table_args__ = (
        Index("idx_alert_item_warehouse", "item_id", "warehouse_id"),
        Index("idx_alert_created_at", "created_at"),
    )

    item_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("items.id"), nullable=False,
    )
    warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=False,
    )
    alert_type: Mapped[AlertType] = mapped_column(
        SAEnum(AlertType, native_enum=False, length=20),
        nullable=False,
    )
    quantity: Mapped[Quantity] = mapped_column(nullable=False)
    min_stock: Mapped[Quantity] = mapped_column(nullable=False)
    reorder_point: Mapped[Quantity] = mapped_column(nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<Alert {self.alert_type.value} item={self.item_id} "
            f"warehouse={self.warehouse_id} qty={self.quantity}>"
        )

    def to_domain(self) -> StockAlert:
        return StockAlert(
            item_id=self.item_id,
            warehouse_id=self.warehouse_id,
            alert_type=self.alert_type,
            quantity=self.quantity,
            min_stock=self.min_stock,
            reorder_point=self.reorder_point,
        )

"""
Module: inventory_kernel.models.master_data
Responsibility: ORM persistence for the master data the stock ledger refers
    to: units, categories, items, warehouses, locations and per
    (item, warehouse) reorder thresholds.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Item, warehouse and unit codes are unique.
    - Location codes are unique per warehouse.
    - At most one ItemWarehouseConfig per (item, warehouse).
    - standard_cost uses Decimal (Numeric(18, 2)) -- never float.

Non-goals:
    Master data is maintained by outside collaborators (CRUD screens, CSV
    import).  The kernel reads these rows and trusts that movement
    references point at existing ones (enforced here by foreign keys).
"""

from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, Enum as SAEnum, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import TrackedBase, UUIDString
from inventory_kernel.db.types import Cost, Quantity


class WarehouseType(str, Enum):
    """Role of a warehouse in the municipal network."""

    CENTRAL = "CENTRAL"
    SATELLITE = "SATELLITE"
    OTHER = "OTHER"


class Unit(TrackedBase):
    """Unit of measure (e.g. UN, KG, LT)."""

    __tablename__ = "units"

    code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    def __repr__(self) -> str:
        return f"<Unit {self.code}>"


class Category(TrackedBase):
    """Item category."""

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def __repr__(self) -> str:
        return f"<Category {self.name}>"


class Item(TrackedBase):
    """
    A stock-keeping item.

    Contract: ``code`` is the immutable business identity.  Cost and
    descriptive fields may be changed by master-data collaborators.
    """

    __tablename__ = "items"

    __table_args__ = (
        Index("idx_item_category", "category_id"),
        Index("idx_item_active", "is_active"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    unit_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("units.id"), nullable=False,
    )
    category_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("categories.id"), nullable=True,
    )
    default_warehouse_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=True,
    )

    standard_cost: Mapped[Cost] = mapped_column(nullable=False, default=Decimal("0"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    unit: Mapped["Unit"] = relationship()
    category: Mapped["Category | None"] = relationship()

    def __repr__(self) -> str:
        return f"<Item {self.code}>"


class Warehouse(TrackedBase):
    """A warehouse; owns zero or more locations."""

    __tablename__ = "warehouses"

    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    warehouse_type: Mapped[WarehouseType] = mapped_column(
        SAEnum(WarehouseType, native_enum=False, length=20),
        nullable=False,
        default=WarehouseType.OTHER,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    locations: Mapped[list["Location"]] = relationship(
        back_populates="warehouse",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Warehouse {self.code}>"


class Location(TrackedBase):
    """A storage location (aisle, shelf, bin) inside one warehouse."""

    __tablename__ = "locations"

    __table_args__ = (
        UniqueConstraint("warehouse_id", "code", name="uq_location_code_per_warehouse"),
    )

    warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=False,
    )
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    warehouse: Mapped["Warehouse"] = relationship(back_populates="locations")

    def __repr__(self) -> str:
        return f"<Location {self.code} warehouse={self.warehouse_id}>"


class ItemWarehouseConfig(TrackedBase):
    """
    Reorder thresholds for one item in one warehouse.

    Read-only from the kernel's perspective; consumed by AlertService.
    """

    __tablename__ = "item_warehouse_configs"

    __table_args__ = (
        UniqueConstraint("item_id", "warehouse_id", name="uq_item_warehouse_config"),
    )

    item_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("items.id"), nullable=False,
    )
    warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=False,
    )
    min_stock: Mapped[Quantity] = mapped_column(nullable=False, default=Decimal("0"))
    reorder_point: Mapped[Quantity] = mapped_column(nullable=False, default=Decimal("0"))

    def __repr__(self) -> str:
        return (
            f"<ItemWarehouseConfig item={self.item_id} warehouse={self.warehouse_id} "
            f"min={self.min_stock} reorder={self.reorder_point}>"
        )

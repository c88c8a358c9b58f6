"""ORM models for the stock movement ledger."""

from inventory_kernel.models.alert import Alert
from inventory_kernel.models.audit_log import AuditLog
from inventory_kernel.models.master_data import (
    Category,
    Item,
    ItemWarehouseConfig,
    Location,
    Unit,
    Warehouse,
    WarehouseType,
)
from inventory_kernel.models.movement import Movement, MovementLine
from inventory_kernel.models.stock_balance import StockBalance

__all__ = [
    "Alert",
    "AuditLog",
    "Category",
    "Item",
    "ItemWarehouseConfig",
    "Location",
    "Movement",
    "MovementLine",
    "StockBalance",
    "Unit",
    "Warehouse",
    "WarehouseType",
]

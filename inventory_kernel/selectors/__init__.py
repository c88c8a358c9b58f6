"""Read-only query selectors."""

from inventory_kernel.selectors.balance_selector import (
    BalanceDTO,
    BalanceSelector,
    ItemWarehouseQuantity,
)
from inventory_kernel.selectors.base import BaseSelector
from inventory_kernel.selectors.movement_selector import (
    MovementDTO,
    MovementLineDTO,
    MovementSelector,
)

__all__ = [
    "BalanceDTO",
    "BalanceSelector",
    "BaseSelector",
    "ItemWarehouseQuantity",
    "MovementDTO",
    "MovementLineDTO",
    "MovementSelector",
]

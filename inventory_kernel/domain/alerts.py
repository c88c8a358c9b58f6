"""
Stock alert classification (``inventory_kernel.domain.alerts``).

Pure threshold logic used by ``AlertService``.  Precedence:

    quantity <= min_stock      -> BELOW_MIN
    quantity <= reorder_point  -> BELOW_REORDER
    otherwise                  -> no alert
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from uuid import UUID


class AlertType(str, Enum):
    """Kinds of stock alert."""

    BELOW_MIN = "BELOW_MIN"
    BELOW_REORDER = "BELOW_REORDER"


@dataclass(frozen=True)
class StockAlert:
    """A computed alert for one (item, warehouse) pair."""

    item_id: UUID
    warehouse_id: UUID
    alert_type: AlertType
    quantity: Decimal
    min_stock: Decimal
    reorder_point: Decimal


def classify_stock_level(
    quantity: Decimal,
    min_stock: Decimal,
    reorder_point: Decimal,
) -> AlertType | None:
    """Classify an aggregate quantity against its thresholds."""
    if quantity <= min_stock:
        return AlertType.BELOW_MIN
    if quantity <= reorder_point:
        return AlertType.BELOW_REORDER
    return None

"""
Module: inventory_kernel.selectors.balance_selector
Responsibility: Read access to the balance store.
Architecture position: Kernel > Selectors.

A key that has never been touched has no row; reads treat it as quantity 0.
A NULL location is a real key value and is matched with IS NULL.
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from inventory_kernel.domain.values import ZERO_QUANTITY, round_quantity
from inventory_kernel.models.stock_balance import StockBalance
from inventory_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class BalanceDTO:
    """Current quantity of one balance key."""

    item_id: UUID
    warehouse_id: UUID
    location_id: UUID | None
    quantity: Decimal


@dataclass(frozen=True)
class ItemWarehouseQuantity:
    """Quantity of one item in one warehouse, summed across locations."""

    item_id: UUID
    warehouse_id: UUID
    quantity: Decimal


class BalanceSelector(BaseSelector[StockBalance]):
    """Queries over stock_balances."""

    def _to_dto(self, row: StockBalance) -> BalanceDTO:
        return BalanceDTO(
            item_id=row.item_id,
            warehouse_id=row.warehouse_id,
            location_id=row.location_id,
            quantity=row.quantity,
        )

    def get_balance(
        self,
        item_id: UUID,
        warehouse_id: UUID,
        location_id: UUID | None = None,
    ) -> BalanceDTO | None:
        """The balance row for an exact key, or None if it was never touched."""
        stmt = select(StockBalance).where(
            StockBalance.item_id == item_id,
            StockBalance.warehouse_id == warehouse_id,
        )
        if location_id is None:
            stmt = stmt.where(StockBalance.location_id.is_(None))
        else:
            stmt = stmt.where(StockBalance.location_id == location_id)

        row = self.session.execute(stmt).scalar_one_or_none()
        return None if row is None else self._to_dto(row)

    def get_quantity(
        self,
        item_id: UUID,
        warehouse_id: UUID,
        location_id: UUID | None = None,
    ) -> Decimal:
        """Quantity at an exact key; 0 for a missing row."""
        balance = self.get_balance(item_id, warehouse_id, location_id)
        return ZERO_QUANTITY if balance is None else balance.quantity

    def list_balances(
        self,
        item_id: UUID | None = None,
        warehouse_id: UUID | None = None,
        location_id: UUID | None = None,
    ) -> list[BalanceDTO]:
        """All balance rows matching the given filters (None = any)."""
        stmt = select(StockBalance)
        if item_id is not None:
            stmt = stmt.where(StockBalance.item_id == item_id)
        if warehouse_id is not None:
            stmt = stmt.where(StockBalance.warehouse_id == warehouse_id)
        if location_id is not None:
            stmt = stmt.where(StockBalance.location_id == location_id)
        stmt = stmt.order_by(
            StockBalance.item_id, StockBalance.warehouse_id, StockBalance.location_id,
        )
        return [self._to_dto(row) for row in self.session.execute(stmt).scalars()]

    def aggregate_by_item_warehouse(self) -> list[ItemWarehouseQuantity]:
        """Per (item, warehouse) totals across locations."""
        stmt = (
            select(
                StockBalance.item_id,
                StockBalance.warehouse_id,
                func.sum(StockBalance.quantity),
            )
            .group_by(StockBalance.item_id, StockBalance.warehouse_id)
            .order_by(StockBalance.item_id, StockBalance.warehouse_id)
        )
        return [
            ItemWarehouseQuantity(
                item_id=item_id,
                warehouse_id=warehouse_id,
                quantity=round_quantity(total if total is not None else 0),
            )
            for item_id, warehouse_id, total in self.session.execute(stmt)
        ]

"""
BalanceApplier -- atomic application of stock deltas to the balance store.

Responsibility:
    Given an ordered list of ``StockDelta``, lock the affected balance rows,
    check the non-negative rule against the freshly locked quantities and
    write the new quantities.  All or nothing.

Architecture position:
    Kernel > Services -- imperative shell.  Called by MovementService.confirm()
    inside its own unit of work.

Invariants enforced:
    - Non-negative stock: no balance goes below zero unless the applier was
      built with ``allow_negative_stock=True``.
    - Single row per key: rows are looked up by (item, warehouse,
      location-or-NULL) and created lazily with quantity 0.
    - Atomic application: the whole list is applied inside one SAVEPOINT.
      Every check runs before the first write, so a rejected list leaves
      no row changed.
    - Lock ordering: existing rows are locked with SELECT ... FOR UPDATE in
      ``StockKey.sort_key()`` order, so two appliers touching overlapping
      keys cannot deadlock.

Failure modes:
    - InsufficientStockError: a running quantity would drop below zero.
    - IntegrityError: a concurrent transaction inserted the same new key
      first.  Propagated; the caller's transaction is to be retried.

Audit relevance:
    Each application is logged as ``balance_applied`` with the before/after
    quantity of every touched key.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from inventory_kernel.config import InventoryConfig
from inventory_kernel.domain.movement import StockDelta, StockKey
from inventory_kernel.domain.values import ZERO_QUANTITY, round_quantity
from inventory_kernel.exceptions import InsufficientStockError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.stock_balance import StockBalance
from inventory_kernel.services.base import BaseService

logger = get_logger("services.balance_applier")


@dataclass(frozen=True)
class AppliedDelta:
    """Outcome of one delta: the key and its quantity before and after."""

    item_id: UUID
    warehouse_id: UUID
    location_id: UUID | None
    delta: Decimal
    quantity_before: Decimal
    quantity_after: Decimal


class BalanceApplier(BaseService[StockBalance]):
    """
    Applies stock deltas under row locks.

    Contract:
        ``apply()`` either writes every delta or raises and writes nothing.
        It flushes but never commits.

    Non-goals:
        - Does NOT validate movements; deltas are trusted to come from
          ``compute_deltas``.
        - Does NOT retry on IntegrityError.
    """

    def __init__(self, session: Session, allow_negative_stock: bool = False):
        super().__init__(session)
        self.allow_negative_stock = allow_negative_stock

    @classmethod
    def from_config(cls, session: Session, config: InventoryConfig) -> "BalanceApplier":
        return cls(session, allow_negative_stock=config.allow_negative_stock)

    def _key_clause(self, key: StockKey):
        clauses = [
            StockBalance.item_id == key.item_id,
            StockBalance.warehouse_id == key.warehouse_id,
        ]
        if key.location_id is None:
            clauses.append(StockBalance.location_id.is_(None))
        else:
            clauses.append(StockBalance.location_id == key.location_id)
        return clauses

    def _lock_row(self, key: StockKey) -> StockBalance | None:
        return self._lock_one(StockBalance, *self._key_clause(key))

    def _lock_rows(self, keys: set[StockKey]) -> dict[StockKey, StockBalance]:
        rows: dict[StockKey, StockBalance] = {}
        for key in sorted(keys, key=StockKey.sort_key):
            row = self._lock_row(key)
            if row is not None:
                rows[key] = row
        return rows

    def apply(self, deltas: Sequence[StockDelta]) -> tuple[AppliedDelta, ...]:
        """
        Apply ``deltas`` in list order.

        Returns:
            One AppliedDelta per input delta, in the same order.

        Raises:
            InsufficientStockError: If a running balance would become negative
                and negative stock is not allowed.
        """
        if not deltas:
            return ()

        with self.session.begin_nested():
            rows = self._lock_rows({d.key for d in deltas})

            running: dict[StockKey, Decimal] = {
                key: row.quantity for key, row in rows.items()
            }
            applied: list[AppliedDelta] = []

            for delta in deltas:
                key = delta.key
                amount = round_quantity(delta.delta)
                current = running.get(key, ZERO_QUANTITY)
                next_quantity = current + amount

                if next_quantity < 0 and not self.allow_negative_stock:
                    logger.warning(
                        "insufficient_stock",
                        extra={
                            "item_id": str(key.item_id),
                            "warehouse_id": str(key.warehouse_id),
                            "location_id": (
                                None if key.location_id is None else str(key.location_id)
                            ),
                            "available": str(current),
                            "requested": str(-amount),
                        },
                    )
                    raise InsufficientStockError(
                        item_id=str(key.item_id),
                        warehouse_id=str(key.warehouse_id),
                        location_id=(
                            None if key.location_id is None else str(key.location_id)
                        ),
                        available=current,
                        requested=-amount,
                    )

                running[key] = next_quantity
                applied.append(AppliedDelta(
                    item_id=key.item_id,
                    warehouse_id=key.warehouse_id,
                    location_id=key.location_id,
                    delta=amount,
                    quantity_before=current,
                    quantity_after=next_quantity,
                ))

            for key, quantity in running.items():
                row = rows.get(key)
                if row is None:
                    self.session.add(StockBalance(
                        item_id=key.item_id,
                        warehouse_id=key.warehouse_id,
                        location_id=key.location_id,
                        quantity=quantity,
                    ))
                else:
                    row.quantity = quantity

            self.session.flush()

        logger.info(
            "balance_applied",
            extra={
                "delta_count": len(applied),
                "key_count": len(running),
                "allow_negative_stock": self.allow_negative_stock,
                "changes": [
                    {
                        "item_id": str(a.item_id),
                        "warehouse_id": str(a.warehouse_id),
                        "location_id": None if a.location_id is None else str(a.location_id),
                        "delta": str(a.delta),
                        "quantity_after": str(a.quantity_after),
                    }
                    for a in applied
                ],
            },
        )
        return tuple(applied)

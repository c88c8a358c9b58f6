"""
AlertService -- reorder alerts from current balances.

Responsibility:
    Compare each item's total quantity in a warehouse (summed across its
    locations) against that pair's ItemWarehouseConfig thresholds and
    optionally replace the persisted alert set.

Architecture position:
    Kernel > Services -- imperative shell over the pure
    ``classify_stock_level`` rule.

Invariants enforced:
    - Only configured (item, warehouse) pairs are evaluated; a pair with no
      balance rows counts as quantity 0.
    - With ``persist=True`` the alerts table holds exactly the latest
      computation.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from inventory_kernel.domain.alerts import StockAlert, classify_stock_level
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.values import ZERO_QUANTITY
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.alert import Alert
from inventory_kernel.models.master_data import ItemWarehouseConfig
from inventory_kernel.selectors.balance_selector import BalanceSelector
from inventory_kernel.services.base import BaseService

logger = get_logger("services.alert")


class AlertService(BaseService[Alert]):
    """Alert computer."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._balances = BalanceSelector(session)

    def compute_alerts(self, persist: bool = True) -> list[StockAlert]:
        """
        Classify every configured (item, warehouse) pair.

        Args:
            persist: Replace the stored alert set with the result.

        Returns:
            The alerts, ordered by item then warehouse.
        """
        totals: dict[tuple, Decimal] = {
            (row.item_id, row.warehouse_id): row.quantity
            for row in self._balances.aggregate_by_item_warehouse()
        }

        configs = self.session.execute(
            select(ItemWarehouseConfig).order_by(
                ItemWarehouseConfig.item_id, ItemWarehouseConfig.warehouse_id,
            )
        ).scalars().all()

        alerts: list[StockAlert] = []
        for config in configs:
            quantity = totals.get((config.item_id, config.warehouse_id), ZERO_QUANTITY)
            alert_type = classify_stock_level(
                quantity, config.min_stock, config.reorder_point,
            )
            if alert_type is None:
                continue
            alerts.append(StockAlert(
                item_id=config.item_id,
                warehouse_id=config.warehouse_id,
                alert_type=alert_type,
                quantity=quantity,
                min_stock=config.min_stock,
                reorder_point=config.reorder_point,
            ))

        if persist:
            now = self._clock.now()
            with self.session.begin_nested():
                self.session.execute(delete(Alert))
                self.session.add_all(
                    Alert(
                        item_id=a.item_id,
                        warehouse_id=a.warehouse_id,
                        alert_type=a.alert_type,
                        quantity=a.quantity,
                        min_stock=a.min_stock,
                        reorder_point=a.reorder_point,
                        created_at=now,
                    )
                    for a in alerts
                )
                self.session.flush()

        logger.info(
            "alerts_computed",
            extra={
                "config_count": len(configs),
                "alert_count": len(alerts),
                "persisted": persist,
            },
        )
        return alerts

    def list_alerts(self) -> list[Alert]:
        """Persisted alerts, newest first."""
        return list(
            self.session.execute(
                select(Alert).order_by(Alert.created_at.desc(), Alert.item_id)
            ).scalars()
        )

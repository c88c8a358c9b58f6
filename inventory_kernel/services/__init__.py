"""Kernel services: the imperative shell around the pure domain."""

from inventory_kernel.services.alert_service import AlertService
from inventory_kernel.services.auditor_service import AuditorService, AuditTrace, AuditTraceEntry
from inventory_kernel.services.balance_applier import AppliedDelta, BalanceApplier
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.movement_service import MovementService

__all__ = [
    "AlertService",
    "AppliedDelta",
    "AuditTrace",
    "AuditTraceEntry",
    "AuditorService",
    "BalanceApplier",
    "BaseService",
    "MovementService",
]

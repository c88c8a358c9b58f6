"""
Audit sink protocol (``inventory_kernel.domain.audit``).

The movement lifecycle reports every state change through an ``AuditSink``.
``AuditorService`` is the persistent implementation; callers may supply
their own (for example, a sink forwarding to an external audit store).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Protocol
from uuid import UUID


class AuditAction(str, Enum):
    """Auditable actions on a movement."""

    CREATE = "CREATE"
    CONFIRM = "CONFIRM"
    CANCEL = "CANCEL"


class AuditSink(Protocol):
    """Receiver of one audit record per state-changing operation."""

    def log_audit(
        self,
        entity_type: str,
        entity_id: UUID,
        action: AuditAction,
        data_before: dict[str, Any] | None = None,
        data_after: dict[str, Any] | None = None,
        user_id: UUID | None = None,
    ) -> Any:
        ...

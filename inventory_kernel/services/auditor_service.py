"""
AuditorService -- append-only audit trail for movement state changes.

Responsibility:
    Persists one ``AuditLog`` row per create, confirm and cancel, with the
    before/after snapshots and a SHA-256 hash of them.  Provides ordered
    traces for review.

Architecture position:
    Kernel > Services -- imperative shell.  Implements the ``AuditSink``
    protocol consumed by MovementService.

Invariants enforced:
    - Append-only: rows are inserted, never updated or deleted.
    - ``seq`` increases by one per entity.  Callers hold the entity's row
      lock while auditing, which serializes allocation.
    - payload_hash = H(canonical {"data_before", "data_after"}).

Failure modes:
    - IntegrityError on (entity_type, entity_id, seq) if two writers audit
      the same entity without holding its lock.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from inventory_kernel.domain.audit import AuditAction
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.audit_log import AuditLog
from inventory_kernel.services.base import BaseService
from inventory_kernel.utils.hashing import hash_audit_payload

logger = get_logger("services.auditor")


@dataclass(frozen=True)
class AuditTraceEntry:
    """A single entry in an audit trace."""

    seq: int
    action: AuditAction
    occurred_at: datetime
    user_id: UUID | None
    data_before: dict[str, Any] | None
    data_after: dict[str, Any] | None
    payload_hash: str
    hash_valid: bool


@dataclass(frozen=True)
class AuditTrace:
    """Complete audit trace for an entity, oldest first."""

    entity_type: str
    entity_id: UUID
    entries: tuple[AuditTraceEntry, ...]

    @property
    def is_empty(self) -> bool:
        return len(self.entries) == 0

    @property
    def actions(self) -> tuple[AuditAction, ...]:
        return tuple(e.action for e in self.entries)

    @property
    def last_action(self) -> AuditAction | None:
        return self.entries[-1].action if self.entries else None

    @property
    def is_intact(self) -> bool:
        """True iff every stored hash matches its snapshots."""
        return all(e.hash_valid for e in self.entries)


class AuditorService(BaseService[AuditLog]):
    """
    Persistent audit sink.

    Contract:
        ``log_audit()`` inserts and flushes one row; it never commits.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def _next_seq(self, entity_type: str, entity_id: UUID) -> int:
        current = self.session.execute(
            select(func.max(AuditLog.seq)).where(
                AuditLog.entity_type == entity_type,
                AuditLog.entity_id == entity_id,
            )
        ).scalar()
        return (current or 0) + 1

    def log_audit(
        self,
        entity_type: str,
        entity_id: UUID,
        action: AuditAction,
        data_before: dict[str, Any] | None = None,
        data_after: dict[str, Any] | None = None,
        user_id: UUID | None = None,
    ) -> AuditLog:
        """
        Record one state change.

        Args:
            entity_type: Audited entity kind, e.g. "Movement".
            entity_id: Audited entity id.
            action: What happened.
            data_before: JSON-safe snapshot before the change (None on create).
            data_after: JSON-safe snapshot after the change.
            user_id: Acting user, if any.

        Returns:
            The flushed AuditLog row.
        """
        record = AuditLog(
            seq=self._next_seq(entity_type, entity_id),
            entity_type=entity_type,
            entity_id=entity_id,
            action=AuditAction(action),
            data_before=data_before,
            data_after=data_after,
            payload_hash=hash_audit_payload(data_before, data_after),
            user_id=user_id,
            occurred_at=self._clock.now(),
        )
        self.session.add(record)
        self.session.flush()

        logger.info(
            "audit_logged",
            extra={
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "action": record.action.value,
                "seq": record.seq,
                "payload_hash": record.payload_hash,
            },
        )
        return record

    def trace(self, entity_type: str, entity_id: UUID) -> AuditTrace:
        """Every audit record of one entity, in sequence order."""
        records = self.session.execute(
            select(AuditLog)
            .where(
                AuditLog.entity_type == entity_type,
                AuditLog.entity_id == entity_id,
            )
            .order_by(AuditLog.seq)
        ).scalars().all()

        entries = tuple(
            AuditTraceEntry(
                seq=r.seq,
                action=r.action,
                occurred_at=r.occurred_at,
                user_id=r.user_id,
                data_before=r.data_before,
                data_after=r.data_after,
                payload_hash=r.payload_hash,
                hash_valid=(
                    hash_audit_payload(r.data_before, r.data_after) == r.payload_hash
                ),
            )
            for r in records
        )
        return AuditTrace(entity_type=entity_type, entity_id=entity_id, entries=entries)

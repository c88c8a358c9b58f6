"""
Module: inventory_kernel.models.audit_log
Responsibility: ORM persistence for the movement audit trail.
Architecture position: Kernel > Models.  May import from db/ and pure domain
    types only.

Invariants enforced:
    - Audit records are append-only.  No service updates or deletes them.
    - payload_hash = SHA-256 of the canonical JSON of
      {"data_before": ..., "data_after": ...}.  Recomputed by
      AuditorService.trace() to flag rows whose snapshots were altered.

Audit relevance:
    Every movement create, confirm and cancel produces exactly one row.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, DateTime, Enum as SAEnum, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString
from inventory_kernel.db.types import PayloadHash
from inventory_kernel.domain.audit import AuditAction


class AuditLog(Base):
    """
    One audited state change of an entity.

    Contract:
        Written only through AuditorService.log_audit().  ``user_id`` is
        nullable because system jobs may act without a user.
    """

    __tablename__ = "audit_logs"

    __table_args__ = (
        Index("idx_audit_log_entity", "entity_type", "entity_id"),
        Index("idx_audit_log_action", "action"),
        Index("idx_audit_log_occurred", "occurred_at"),
        UniqueConstraint("entity_type", "entity_id", "seq", name="uq_audit_log_entity_seq"),
    )

    # Per-entity sequence, allocated by AuditorService under the entity lock
    seq: Mapped[int] = mapped_column(Integer, nullable=False)

    # e.g. "Movement"
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    action: Mapped[AuditAction] = mapped_column(
        SAEnum(AuditAction, native_enum=False, length=20),
        nullable=False,
    )

    data_before: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    data_after: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    payload_hash: Mapped[PayloadHash] = mapped_column(nullable=False)

    user_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AuditLog {self.action.value} on {self.entity_type}:{self.entity_id}>"

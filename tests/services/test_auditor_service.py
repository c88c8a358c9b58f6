"""
Tests for AuditorService (``inventory_kernel.services.auditor_service``).

Covers per-entity sequencing, payload hashing, and tamper detection in
traces.
"""

from uuid import uuid4

from sqlalchemy import update

from inventory_kernel.domain.audit import AuditAction
from inventory_kernel.models.audit_log import AuditLog
from inventory_kernel.utils.hashing import hash_audit_payload


class TestLogAudit:

    def test_records_snapshot_and_hash(self, auditor_service, test_actor_id, deterministic_clock):
        entity_id = uuid4()
        after = {"status": "DRAFT", "lines": [{"quantity": "1.000"}]}

        record = auditor_service.log_audit(
            "Movement", entity_id, AuditAction.CREATE, data_after=after, user_id=test_actor_id,
        )

        assert record.seq == 1
        assert record.action is AuditAction.CREATE
        assert record.payload_hash == hash_audit_payload(None, after)
        assert record.occurred_at == deterministic_clock.now()

    def test_sequence_is_per_entity(self, auditor_service):
        first, second = uuid4(), uuid4()
        auditor_service.log_audit("Movement", first, AuditAction.CREATE)
        auditor_service.log_audit("Movement", second, AuditAction.CREATE)
        record = auditor_service.log_audit("Movement", first, AuditAction.CANCEL)
        assert record.seq == 2

    def test_action_accepts_string(self, auditor_service):
        record = auditor_service.log_audit("Movement", uuid4(), "CONFIRM")
        assert record.action is AuditAction.CONFIRM


class TestTrace:

    def test_empty_trace(self, auditor_service):
        trace = auditor_service.trace("Movement", uuid4())
        assert trace.is_empty
        assert trace.last_action is None

    def test_trace_in_sequence_order(self, auditor_service):
        entity_id = uuid4()
        auditor_service.log_audit("Movement", entity_id, AuditAction.CREATE, data_after={"s": 1})
        auditor_service.log_audit(
            "Movement", entity_id, AuditAction.CANCEL, data_before={"s": 1}, data_after={"s": 2},
        )

        trace = auditor_service.trace("Movement", entity_id)
        assert [e.seq for e in trace.entries] == [1, 2]
        assert trace.actions == (AuditAction.CREATE, AuditAction.CANCEL)
        assert trace.is_intact

    def test_altered_snapshot_detected(self, session, auditor_service):
        entity_id = uuid4()
        record = auditor_service.log_audit(
            "Movement", entity_id, AuditAction.CREATE, data_after={"status": "DRAFT"},
        )
        session.execute(
            update(AuditLog)
            .where(AuditLog.id == record.id)
            .values(data_after={"status": "CONFIRMED"})
        )
        session.expire_all()

        trace = auditor_service.trace("Movement", entity_id)
        assert not trace.entries[0].hash_valid
        assert not trace.is_intact

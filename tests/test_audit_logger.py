"""
Tests for the SQLite audit trail.

Covers:
- Event logging and filtered queries
- Assignment removal history
- Fire-and-forget helpers
"""

from datetime import datetime
from unittest.mock import Mock

import pytest

from audit.audit_logger import (
    AuditEventType,
    AuditLogger,
    AuditSeverity,
    audit_safely,
    record_removal_safely,
)
from domain.aggregates import RemovalRecord
from domain.value_objects import TaskType
from practice_panel.staff import AssignmentManager


@pytest.fixture
def audit(tmp_path):
    return AuditLogger(str(tmp_path / "audit" / "audit.db"))


def _removal(**overrides) -> RemovalRecord:
    data = dict(
        assignment_id="A1",
        client_id="C1",
        client_name="Acme Trading",
        employee_id="E1",
        year=2025,
        month=3,
        task=TaskType.BOOKKEEPING,
        assigned_at=datetime(2025, 3, 1),
        assigned_by="admin",
        removed_at=datetime(2025, 3, 11),
        removed_by="admin",
        removal_reason="Reassigned",
        duration_days=10,
    )
    data.update(overrides)
    return RemovalRecord(**data)


class TestAuditLog:
    """Test log and query."""

    def test_log_and_query(self, audit):
        event_id = audit.log(
            event_type=AuditEventType.MONTH_LOCK,
            action="lock_month",
            resource_type="month",
            resource_id="C1:2025-03",
            user_id="admin",
            details={"files_affected": 2},
        )

        events = audit.query(resource_id="C1:2025-03")

        assert len(events) == 1
        event = events[0]
        assert event.event_id == event_id
        assert event.event_type == AuditEventType.MONTH_LOCK
        assert event.severity == AuditSeverity.INFO
        assert event.details == {"files_affected": 2}
        assert event.to_dict()["event_type"] == "lock.month_lock"

    def test_filters(self, audit):
        audit.log(AuditEventType.NOTE_ADD, "add_month_note", "note", user_id="C1")
        audit.log(AuditEventType.NOTE_ADD, "add_file_note", "note", user_id="E1")
        audit.log(AuditEventType.MONTH_AUTO_LOCK, "auto_lock", "month", user_id="SYSTEM_CRON",
                  severity=AuditSeverity.WARNING, success=False, error_message="1 failed")

        assert len(audit.query(event_type=AuditEventType.NOTE_ADD)) == 2
        assert [e.action for e in audit.query(user_id="E1")] == ["add_file_note"]
        failed = audit.query(success_only=False)
        assert len(failed) == 1
        assert failed[0].error_message == "1 failed"

    def test_creates_parent_directory(self, tmp_path):
        AuditLogger(str(tmp_path / "nested" / "dir" / "audit.db"))
        assert (tmp_path / "nested" / "dir" / "audit.db").exists()


class TestRemovalHistory:

    def test_record_and_read_back(self, audit):
        audit.record_removal(_removal())
        audit.record_removal(_removal(assignment_id="A2", employee_id="E2", removed_at=datetime(2025, 3, 12)))

        history = audit.get_removal_history(client_id="C1")

        assert [r.assignment_id for r in history] == ["A2", "A1"]
        assert history[1].removal_reason == "Reassigned"
        assert history[1].task == TaskType.BOOKKEEPING
        assert [r.assignment_id for r in audit.get_removal_history(employee_id="E1")] == ["A1"]

    def test_remove_writes_history(self, tmp_path, client_repo, employee_repo, employees,
                                   client_with_documents, settings):
        audit = AuditLogger(str(tmp_path / "audit.db"))
        manager = AssignmentManager(client_repo, employee_repo, audit_logger=audit, settings=settings)
        manager.assign("C1", "E1", 2025, 3, TaskType.BOOKKEEPING, actor="admin")

        manager.remove("C1", "E1", 2025, 3, TaskType.BOOKKEEPING, actor="admin", reason="Workload")

        history = audit.get_removal_history(employee_id="E1")
        assert len(history) == 1
        assert history[0].removal_reason == "Workload"
        assert history[0].client_name == "Acme Trading"
        assert {e.event_type for e in audit.query(resource_type="assignment")} >= {
            AuditEventType.ASSIGNMENT_CREATE, AuditEventType.ASSIGNMENT_REMOVE,
        }


class TestSafeHelpers:
    """Audit outages never reach the caller."""

    def test_audit_safely_without_logger(self):
        assert audit_safely(None, AuditEventType.NOTE_ADD, action="x", resource_type="note") is None

    def test_audit_safely_swallows(self):
        broken = Mock()
        broken.log.side_effect = OSError("disk full")

        assert audit_safely(broken, AuditEventType.NOTE_ADD, action="x", resource_type="note") is None

    def test_audit_safely_returns_event_id(self, audit):
        event_id = audit_safely(audit, AuditEventType.NOTE_ADD, action="x", resource_type="note")
        assert audit.query()[0].event_id == event_id

    def test_record_removal_safely_swallows(self):
        broken = Mock()
        broken.record_removal.side_effect = OSError("disk full")

        assert record_removal_safely(broken, _removal()) is None

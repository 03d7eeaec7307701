"""
Audit Logging System

Append-only activity trail for the practice document engine.

Two tables:
- audit_log             one row per document, lock, note or assignment event
- assignment_removals   history of soft-removed assignments

Audit writes are fire-and-forget from the engine's point of view: callers go
through `audit_safely` / `record_removal_safely`, which log and swallow any
storage failure so an audit outage never fails a business operation.
"""

import json
import logging
import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from domain.aggregates import RemovalRecord

logger = logging.getLogger(__name__)


class AuditEventType(Enum):
    """Types of events that get audited"""

    # Documents
    DOCUMENT_UPLOAD = "document.upload"
    DOCUMENT_DELETE = "document.delete"
    DOCUMENT_REPLACE = "document.replace"

    # Locks
    MONTH_LOCK = "lock.month_lock"
    MONTH_UNLOCK = "lock.month_unlock"
    MONTH_AUTO_LOCK = "lock.month_auto_lock"
    CATEGORY_LOCK = "lock.category_lock"
    CATEGORY_UNLOCK = "lock.category_unlock"

    # Notes
    NOTE_ADD = "note.add"
    NOTES_VIEWED = "note.viewed"

    # Assignments
    ASSIGNMENT_CREATE = "assignment.create"
    ASSIGNMENT_REMOVE = "assignment.remove"
    ASSIGNMENT_COMPLETE = "assignment.complete"
    ASSIGNMENT_ROLLBACK = "assignment.rollback"

    # Staff
    EMPLOYEE_DEACTIVATE = "employee.deactivate"


class AuditSeverity(Enum):
    """Severity levels for audit events"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass
class AuditEvent:
    """Audit event record"""
    event_id: str
    event_type: AuditEventType
    severity: AuditSeverity
    timestamp: datetime

    # Who performed the action
    user_id: Optional[str]
    user_role: Optional[str]

    # What was the action
    action: str
    resource_type: str
    resource_id: Optional[str]

    details: Dict[str, Any] = field(default_factory=dict)
    success: bool = True
    error_message: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "AuditEvent":
        return cls(
            event_id=row["event_id"],
            event_type=AuditEventType(row["event_type"]),
            severity=AuditSeverity(row["severity"]),
            timestamp=datetime.fromisoformat(row["timestamp"]),
            user_id=row["user_id"],
            user_role=row["user_role"],
            action=row["action"],
            resource_type=row["resource_type"],
            resource_id=row["resource_id"],
            details=json.loads(row["details"]) if row["details"] else {},
            success=bool(row["success"]),
            error_message=row["error_message"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
            "user_id": self.user_id,
            "user_role": self.user_role,
            "action": self.action,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "details": self.details,
            "success": self.success,
            "error_message": self.error_message,
        }


class AuditLogger:
    """
    Audit logging system with database persistence.

    Logs every state-changing engine operation.
    """

    def __init__(self, db_path: str = "./data/audit_log.db"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_schema()

    def _initialize_schema(self):
        """Create audit tables"""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS audit_log (
                    event_id TEXT PRIMARY KEY,
                    event_type TEXT NOT NULL,
                    severity TEXT NOT NULL,
                    timestamp TEXT NOT NULL,

                    user_id TEXT,
                    user_role TEXT,

                    action TEXT NOT NULL,
                    resource_type TEXT NOT NULL,
                    resource_id TEXT,

                    details JSON,

                    success INTEGER NOT NULL,
                    error_message TEXT
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS assignment_removals (
                    removal_id TEXT PRIMARY KEY,
                    assignment_id TEXT NOT NULL,
                    client_id TEXT NOT NULL,
                    employee_id TEXT NOT NULL,
                    year INTEGER NOT NULL,
                    month INTEGER NOT NULL,
                    task TEXT NOT NULL,
                    removed_at TEXT NOT NULL,
                    removed_by TEXT NOT NULL,
                    payload JSON NOT NULL
                )
            """)

            # Indexes for querying
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_audit_timestamp ON audit_log(timestamp)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_audit_user ON audit_log(user_id)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_audit_event_type ON audit_log(event_type)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_audit_resource ON audit_log(resource_type, resource_id)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_removals_client ON assignment_removals(client_id)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_removals_employee ON assignment_removals(employee_id)")

            conn.commit()

    def log(
        self,
        event_type: AuditEventType,
        action: str,
        resource_type: str,
        user_id: Optional[str] = None,
        user_role: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[Dict] = None,
        success: bool = True,
        error_message: Optional[str] = None,
        severity: AuditSeverity = AuditSeverity.INFO,
    ) -> str:
        """
        Log an audit event.

        Returns: event_id
        """
        event_id = str(uuid.uuid4())

        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                INSERT INTO audit_log (
                    event_id, event_type, severity, timestamp,
                    user_id, user_role,
                    action, resource_type, resource_id,
                    details, success, error_message
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                event_id,
                event_type.value,
                severity.value,
                datetime.utcnow().isoformat(),
                user_id,
                user_role,
                action,
                resource_type,
                resource_id,
                json.dumps(details, default=str) if details else None,
                1 if success else 0,
                error_message,
            ))
            conn.commit()

        return event_id

    def record_removal(self, record: RemovalRecord) -> str:
        """Append an assignment removal to the history table."""
        removal_id = str(uuid.uuid4())

        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                INSERT INTO assignment_removals (
                    removal_id, assignment_id, client_id, employee_id,
                    year, month, task, removed_at, removed_by, payload
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                removal_id,
                record.assignment_id,
                record.client_id,
                record.employee_id,
                record.year,
                record.month,
                record.task.value,
                record.removed_at.isoformat(),
                record.removed_by,
                json.dumps(record.to_dict()),
            ))
            conn.commit()

        return removal_id

    def query(
        self,
        user_id: Optional[str] = None,
        event_type: Optional[AuditEventType] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        success_only: Optional[bool] = None,
        limit: int = 100,
        offset: int = 0
    ) -> List[AuditEvent]:
        """Query audit log with filters"""

        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()

            query = "SELECT * FROM audit_log WHERE 1=1"
            params = []

            if user_id:
                query += " AND user_id = ?"
                params.append(user_id)

            if event_type:
                query += " AND event_type = ?"
                params.append(event_type.value)

            if resource_type:
                query += " AND resource_type = ?"
                params.append(resource_type)

            if resource_id:
                query += " AND resource_id = ?"
                params.append(resource_id)

            if start_date:
                query += " AND timestamp >= ?"
                params.append(start_date.isoformat())

            if end_date:
                query += " AND timestamp <= ?"
                params.append(end_date.isoformat())

            if success_only is not None:
                query += " AND success = ?"
                params.append(1 if success_only else 0)

            query += " ORDER BY timestamp DESC LIMIT ? OFFSET ?"
            params.extend([limit, offset])

            cursor.execute(query, params)
            return [AuditEvent.from_row(dict(row)) for row in cursor.fetchall()]

    def get_removal_history(
        self,
        client_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[RemovalRecord]:
        """Removal history, newest first."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()

            query = "SELECT payload FROM assignment_removals WHERE 1=1"
            params = []

            if client_id:
                query += " AND client_id = ?"
                params.append(client_id)

            if employee_id:
                query += " AND employee_id = ?"
                params.append(employee_id)

            query += " ORDER BY removed_at DESC LIMIT ?"
            params.append(limit)

            cursor.execute(query, params)
            return [RemovalRecord.model_validate(json.loads(row[0])) for row in cursor.fetchall()]


# Global instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger(db_path: str = "./data/audit_log.db") -> AuditLogger:
    """Get global audit logger instance"""
    global _audit_logger

    if _audit_logger is None:
        _audit_logger = AuditLogger(db_path)

    return _audit_logger


# =============================================================================
# FIRE-AND-FORGET HELPERS
# =============================================================================

def audit_safely(audit_logger: Optional[AuditLogger], event_type: AuditEventType, **kwargs) -> Optional[str]:
    """Log an audit event; a failure is logged and never raised."""
    if audit_logger is None:
        return None
    try:
        return audit_logger.log(event_type=event_type, **kwargs)
    except Exception as e:
        logger.warning(f"Audit write failed for {event_type.value}: {e}")
        return None


def record_removal_safely(audit_logger: Optional[AuditLogger], record: RemovalRecord) -> Optional[str]:
    """Hand a removal record to the audit sink; a failure is logged and never raised."""
    if audit_logger is None:
        return None
    try:
        return audit_logger.record_removal(record)
    except Exception as e:
        logger.warning(f"Removal history write failed for assignment {record.assignment_id}: {e}")
        return None

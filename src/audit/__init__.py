"""
Audit Trail Module.

Activity log and assignment removal history for the practice document
engine. Engine code writes through the fire-and-forget helpers:

    from audit import audit_safely, AuditEventType

    audit_safely(audit_logger, AuditEventType.MONTH_LOCK,
                 action="lock_month", resource_type="month", resource_id="c1:2025-03")
"""

from .audit_logger import (
    AuditEventType,
    AuditSeverity,
    AuditEvent,
    AuditLogger,
    get_audit_logger,
    audit_safely,
    record_removal_safely,
)

__all__ = [
    "AuditEventType",
    "AuditSeverity",
    "AuditEvent",
    "AuditLogger",
    "get_audit_logger",
    "audit_safely",
    "record_removal_safely",
]

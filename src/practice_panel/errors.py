"""
Practice Panel Errors

Every failure the document and assignment engine reports to its caller.
Each error carries a stable code and structured details so callers can
decide whether a retry is safe.
"""

from typing import Any, Dict, Optional


class PracticePanelError(Exception):
    """Base class for engine errors."""

    code = "PRACTICE_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(PracticePanelError):
    """Malformed input: bad year, month or task, or a missing required note."""
    code = "VALIDATION_ERROR"


class NotFoundError(PracticePanelError):
    """Client, employee, assignment or file absent."""
    code = "NOT_FOUND"


class ConflictError(PracticePanelError):
    """Duplicate assignment, already-removed record, or removal of a completed task."""
    code = "CONFLICT"


class CapacityError(PracticePanelError):
    """The per-month task ceiling has been reached."""
    code = "CAPACITY_EXCEEDED"


class PreconditionError(PracticePanelError):
    """No documents uploaded for the period."""
    code = "PRECONDITION_FAILED"


class LockedError(PracticePanelError):
    """Mutation blocked by month or category lock state."""
    code = "LOCKED"


class InconsistencyError(PracticePanelError):
    """
    The client and employee copies of an assignment disagree.

    Indicates an earlier partial write. Never repaired automatically.
    """
    code = "INCONSISTENT_STATE"


class PartialFailureError(PracticePanelError):
    """A paired write failed after its first half succeeded."""
    code = "PARTIAL_FAILURE"

    def __init__(
        self,
        message: str,
        rollback_completed: bool,
        original_error: Optional[BaseException] = None,
        rollback_error: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.rollback_completed = rollback_completed
        self.original_error = original_error
        self.rollback_error = rollback_error
        details = dict(details or {})
        details["rollback_completed"] = rollback_completed
        if original_error is not None:
            details["original_error"] = str(original_error)
        if rollback_error is not None:
            details["rollback_error"] = str(rollback_error)
        super().__init__(message, details)


__all__ = [
    "PracticePanelError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "CapacityError",
    "PreconditionError",
    "LockedError",
    "InconsistencyError",
    "PartialFailureError",
]

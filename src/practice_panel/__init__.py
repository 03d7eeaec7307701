"""
Practice Panel

Document and task engine for an accounting practice. Clients upload
monthly documents, staff lock periods once they are reviewed, both sides
exchange notes, and managers assign monthly tasks to employees.

Key Features:
- Document tree per client: year -> month -> category -> files -> notes
- Month locks that cascade to every category and file
- Per-viewer read tracking on every note
- Task assignments mirrored on client and employee records

Usage:
    from practice_panel import AssignmentManager, set_month_lock
    from practice_panel.api import practice_router

    # Include router in FastAPI app
    app.include_router(practice_router, prefix="/api")
"""

from .errors import (
    PracticePanelError,
    ValidationError,
    NotFoundError,
    ConflictError,
    CapacityError,
    PreconditionError,
    LockedError,
    InconsistencyError,
    PartialFailureError,
)
from .documents import (
    validate_period,
    get_or_create_month,
    attach_files,
    remove_file,
    month_has_documents,
)
from .workflow import (
    CascadeResult,
    set_month_lock,
    set_category_lock,
    ensure_mutable,
    require_update_note,
)
from .notes import mark_viewed, mark_all_viewed, count_unviewed, list_notes
from .staff import AssignmentManager, AssignmentPair

__version__ = "1.0.0"

__all__ = [
    # Errors
    "PracticePanelError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "CapacityError",
    "PreconditionError",
    "LockedError",
    "InconsistencyError",
    "PartialFailureError",
    # Documents
    "validate_period",
    "get_or_create_month",
    "attach_files",
    "remove_file",
    "month_has_documents",
    # Locks
    "CascadeResult",
    "set_month_lock",
    "set_category_lock",
    "ensure_mutable",
    "require_update_note",
    # Notes
    "mark_viewed",
    "mark_all_viewed",
    "count_unviewed",
    "list_notes",
    # Staff
    "AssignmentManager",
    "AssignmentPair",
]

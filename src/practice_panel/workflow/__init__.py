"""Month and category lock workflow."""

from .lock_cascade import (
    CascadeResult,
    set_month_lock,
    set_category_lock,
    is_mutable,
    ensure_mutable,
    update_note_required,
    require_update_note,
    record_change_note,
)

__all__ = [
    "CascadeResult",
    "set_month_lock",
    "set_category_lock",
    "is_mutable",
    "ensure_mutable",
    "update_note_required",
    "require_update_note",
    "record_change_note",
]

"""
Lock Cascade Engine

Lock state for months and categories.

State per lockable node:
    Unlocked <-> Locked
    was_locked_once: False -> True on the first lock, never reset

A month lock or unlock always overwrites every category beneath it,
including categories that were independently locked or unlocked before.
A category lock touches only that category.

Mutation rules:
- An existing category's own flag decides whether it can be mutated, so a
  category unlocked after a month cascade accepts uploads.
- A category that does not exist yet inherits the month flag.
- Once a category has been locked, adding to a non-empty category requires
  an explanatory note, recorded on the category and on the month.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from domain.aggregates import CategoryDocument, MonthRecord
from domain.value_objects import CategorySelector, Note

from ..documents.tree_store import get_or_create_category
from ..errors import LockedError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class CascadeResult:
    """What a month lock or unlock did."""
    locked: bool
    actor: str
    at: datetime
    touched: List[str] = field(default_factory=list)
    changed: List[str] = field(default_factory=list)
    files_affected: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_locked": self.locked,
            "actor": self.actor,
            "at": self.at.isoformat(),
            "touched": list(self.touched),
            "changed": list(self.changed),
            "files_affected": self.files_affected,
        }


def _apply_lock(node, locked: bool, actor: str, at: datetime) -> bool:
    """Set lock state and metadata on a month or category. Returns True if the state changed."""
    changed = node.is_locked != locked
    node.is_locked = locked
    if locked:
        node.was_locked_once = True
        node.locked_at = at
        node.locked_by = actor
    else:
        node.unlocked_at = at
        node.unlocked_by = actor
    return changed


def _stamp_files(category: CategoryDocument, locked: bool, actor: str, at: datetime) -> int:
    for file in category.files:
        file.is_locked = locked
        file.locked_at = at if locked else None
        file.locked_by = actor if locked else None
    return len(category.files)


def set_month_lock(
    month_record: MonthRecord,
    locked: bool,
    actor: str,
    at: Optional[datetime] = None,
) -> CascadeResult:
    """
    Lock or unlock a month and cascade the value to every category and file.

    The whole month is mutated in memory. The caller writes the client back
    in one save so no partial cascade is ever persisted.
    """
    at = at or datetime.utcnow()
    result = CascadeResult(locked=locked, actor=actor, at=at)

    result.touched.append("month")
    if _apply_lock(month_record, locked, actor, at):
        result.changed.append("month")

    for label, category in month_record.iter_categories():
        result.touched.append(label)
        if _apply_lock(category, locked, actor, at):
            result.changed.append(label)
        result.files_affected += _stamp_files(category, locked, actor, at)

    logger.info(
        f"Month {'locked' if locked else 'unlocked'} by {actor}: "
        f"{len(result.changed)} node(s) changed, {result.files_affected} file(s) affected"
    )
    return result


def set_category_lock(
    month_record: MonthRecord,
    selector: CategorySelector,
    locked: bool,
    actor: str,
    at: Optional[datetime] = None,
) -> CategoryDocument:
    """
    Lock or unlock one category and its files without touching the month or siblings.

    A missing 'other' category is created unlocked first.
    """
    at = at or datetime.utcnow()
    category = get_or_create_category(month_record, selector)
    _apply_lock(category, locked, actor, at)
    _stamp_files(category, locked, actor, at)
    return category


def is_mutable(month_record: MonthRecord, selector: CategorySelector) -> bool:
    category = month_record.get_category(selector)
    if category is not None:
        return not category.is_locked
    return not month_record.is_locked


def ensure_mutable(month_record: MonthRecord, selector: CategorySelector) -> None:
    """
    Raise LockedError if files in the category cannot be changed.

    The category's own flag takes precedence over the month flag.
    """
    if is_mutable(month_record, selector):
        return

    category = month_record.get_category(selector)
    scope = "category" if category is not None else "month"
    raise LockedError(
        f"Cannot modify {selector.label}: {scope} is locked",
        details={"category": selector.label, "locked_scope": scope},
    )


def update_note_required(category: Optional[CategoryDocument]) -> bool:
    """A once-locked category that already holds files needs a note for changes."""
    return category is not None and category.was_locked_once and len(category.files) > 0


def require_update_note(category: Optional[CategoryDocument], note_text: Optional[str]) -> Optional[str]:
    """
    Validate the explanatory note for an update.

    Returns:
        The stripped note text, or None when no note is needed and none was given

    Raises:
        ValidationError: the note is required but missing or blank
    """
    text = note_text.strip() if note_text else ""
    if update_note_required(category) and not text:
        raise ValidationError(
            "A note is required when updating documents in a previously locked category",
            details={"note_required": True},
        )
    return text or None


def record_change_note(
    month_record: MonthRecord,
    category: CategoryDocument,
    text: str,
    author_id: str,
    author_name: Optional[str] = None,
    at: Optional[datetime] = None,
) -> Note:
    """
    Record a change or deletion reason on the category and on the month.

    Two separate Note objects are created with the same text so each copy
    keeps its own viewer ledger.
    """
    at = at or datetime.utcnow()
    category_note = Note(text=text, added_by=author_id, added_by_name=author_name, added_at=at)
    month_note = Note(text=text, added_by=author_id, added_by_name=author_name, added_at=at)
    category.category_notes.append(category_note)
    month_record.month_notes.append(month_note)
    return category_note

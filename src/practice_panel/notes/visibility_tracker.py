"""
Note Visibility Tracker

Per-viewer read tracking over every note in a client's document tree.

Notes live at three levels:
- month notes           -> source "client", type month_note
- category notes        -> source "client", type delete_reason
- file notes            -> source "employee", type file_feedback

The source is derived from where the note sits, never stored on the note.
There is no secondary index; counts are a full tree walk and a missing
sub-tree contributes zero.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

from domain.aggregates import Client
from domain.value_objects import Note, NoteSource, NoteType, NoteView, ViewerKind

from ..errors import ValidationError

logger = logging.getLogger(__name__)


def parse_viewer_kind(viewer_kind) -> ViewerKind:
    """Convert a viewer kind to ViewerKind, raising ValidationError if unknown."""
    if isinstance(viewer_kind, ViewerKind):
        return viewer_kind
    try:
        return ViewerKind(viewer_kind)
    except ValueError:
        raise ValidationError(
            f"Invalid viewer kind: {viewer_kind}",
            details={"viewer_kind": viewer_kind, "allowed": [k.value for k in ViewerKind]},
        )


@dataclass
class NoteRef:
    """A note plus the position it was found at."""
    note: Note
    source: NoteSource
    note_type: NoteType
    year: int
    month: int
    category: Optional[str] = None
    file_name: Optional[str] = None

    def to_dict(self, viewer_id: Optional[str] = None, viewer_kind: Optional[ViewerKind] = None) -> Dict[str, Any]:
        data = {
            "note_id": self.note.note_id,
            "text": self.note.text,
            "added_by": self.note.added_by,
            "added_by_name": self.note.added_by_name,
            "added_at": self.note.added_at.isoformat(),
            "employee_id": self.note.employee_id,
            "source": self.source.value,
            "type": self.note_type.value,
            "year": self.year,
            "month": self.month,
            "category": self.category,
            "file_name": self.file_name,
            "is_viewed_by_client": self.note.is_viewed_by_client,
        }
        if viewer_id is not None:
            data["is_viewed"] = self.note.has_viewer(viewer_id, viewer_kind)
        return data


def iter_notes(client: Client, year: Optional[int] = None, month: Optional[int] = None) -> Iterator[NoteRef]:
    """Walk month, category and file notes, optionally limited to one period."""
    for note_year, note_month, record in client.iter_months():
        if year is not None and note_year != year:
            continue
        if month is not None and note_month != month:
            continue

        for note in record.month_notes:
            yield NoteRef(note, NoteSource.CLIENT, NoteType.MONTH_NOTE, note_year, note_month)

        for label, category in record.iter_categories():
            for note in category.category_notes:
                yield NoteRef(
                    note, NoteSource.CLIENT, NoteType.DELETE_REASON,
                    note_year, note_month, category=label,
                )
            for file in category.files:
                for note in file.notes:
                    yield NoteRef(
                        note, NoteSource.EMPLOYEE, NoteType.FILE_FEEDBACK,
                        note_year, note_month, category=label, file_name=file.file_name,
                    )


def mark_viewed(
    note: Note,
    viewer_id: str,
    viewer_kind: ViewerKind,
    at: Optional[datetime] = None,
) -> bool:
    """
    Record that a viewer has seen a note.

    Idempotent per (viewer_id, viewer_kind).

    Returns:
        True if a ledger entry was appended, False if one already existed
    """
    viewer_kind = parse_viewer_kind(viewer_kind)
    if note.has_viewer(viewer_id, viewer_kind):
        return False

    note.viewed_by.append(NoteView(
        viewer_id=viewer_id,
        viewer_kind=viewer_kind,
        viewed_at=at or datetime.utcnow(),
    ))
    if viewer_kind == ViewerKind.CLIENT:
        note.is_viewed_by_client = True
    return True


def count_unviewed(client: Client, viewer_id: str, viewer_kind: Optional[ViewerKind] = None) -> int:
    """Count notes anywhere in the tree that the viewer has not seen."""
    if viewer_kind is not None:
        viewer_kind = parse_viewer_kind(viewer_kind)
    return sum(
        1 for ref in iter_notes(client)
        if not ref.note.has_viewer(viewer_id, viewer_kind)
    )


def mark_all_viewed(
    client: Client,
    viewer_id: str,
    viewer_kind: ViewerKind,
    at: Optional[datetime] = None,
    year: Optional[int] = None,
    month: Optional[int] = None,
) -> Dict[str, int]:
    """
    Mark every note (optionally one period's notes) as viewed.

    The caller persists the client in a single write afterwards.

    Returns:
        {"marked": newly marked notes, "total": notes visited}
    """
    viewer_kind = parse_viewer_kind(viewer_kind)
    at = at or datetime.utcnow()
    marked = 0
    total = 0
    for ref in iter_notes(client, year=year, month=month):
        total += 1
        if mark_viewed(ref.note, viewer_id, viewer_kind, at):
            marked += 1

    logger.debug(f"Marked {marked}/{total} notes viewed for {viewer_kind} {viewer_id}")
    return {"marked": marked, "total": total}


def find_note(client: Client, note_id: str) -> Optional[NoteRef]:
    for ref in iter_notes(client):
        if ref.note.note_id == note_id:
            return ref
    return None


def list_notes(
    client: Client,
    year: Optional[int] = None,
    month: Optional[int] = None,
    viewer_id: Optional[str] = None,
    viewer_kind: Optional[ViewerKind] = None,
) -> List[Dict[str, Any]]:
    """Flat listing of notes, newest first, with their fixed source mapping."""
    if viewer_kind is not None:
        viewer_kind = parse_viewer_kind(viewer_kind)
    refs = sorted(iter_notes(client, year=year, month=month), key=lambda r: r.note.added_at, reverse=True)
    return [ref.to_dict(viewer_id, viewer_kind) for ref in refs]

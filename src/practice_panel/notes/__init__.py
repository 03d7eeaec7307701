"""Note read tracking and listings."""

from .visibility_tracker import (
    NoteRef,
    iter_notes,
    mark_viewed,
    count_unviewed,
    mark_all_viewed,
    find_note,
    list_notes,
    parse_viewer_kind,
)

__all__ = [
    "NoteRef",
    "iter_notes",
    "mark_viewed",
    "count_unviewed",
    "mark_all_viewed",
    "find_note",
    "list_notes",
    "parse_viewer_kind",
]

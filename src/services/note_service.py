"""
Note Service

Read tracking and staff feedback on a client's notes.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from audit.audit_logger import AuditEventType
from domain.value_objects import CategorySelector, Note, ViewerKind
from practice_panel.documents.tree_store import find_file
from practice_panel.errors import NotFoundError, ValidationError
from practice_panel.notes import visibility_tracker

from .client_document_service import ClientDocumentService

logger = logging.getLogger(__name__)


class NoteService(ClientDocumentService):
    """Note visibility and feedback on stored clients."""

    def mark_note_viewed(
        self,
        client_id: str,
        note_id: str,
        viewer_id: str,
        viewer_kind: ViewerKind,
    ) -> Dict[str, Any]:
        client = self._load_client(client_id)
        ref = visibility_tracker.find_note(client, note_id)
        if ref is None:
            raise NotFoundError(f"Note not found: {note_id}", details={"client_id": client_id, "note_id": note_id})

        changed = visibility_tracker.mark_viewed(ref.note, viewer_id, viewer_kind)
        if changed:
            self.clients.save(client)
        return {"note_id": note_id, "newly_viewed": changed, **ref.to_dict(viewer_id, viewer_kind)}

    def mark_all_viewed(
        self,
        client_id: str,
        viewer_id: str,
        viewer_kind: ViewerKind,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> Dict[str, int]:
        """Mark every note (or one period's notes) viewed with a single write."""
        client = self._load_client(client_id)
        counts = visibility_tracker.mark_all_viewed(client, viewer_id, viewer_kind, year=year, month=month)
        if counts["marked"]:
            self.clients.save(client)

        self._audit(
            AuditEventType.NOTES_VIEWED,
            action="mark_all_viewed",
            resource_type="note",
            resource_id=client_id,
            user_id=viewer_id,
            user_role=visibility_tracker.parse_viewer_kind(viewer_kind).value,
            details={"year": year, "month": month, **counts},
        )
        return counts

    def count_unviewed(self, client_id: str, viewer_id: str, viewer_kind: Optional[ViewerKind] = None) -> int:
        return visibility_tracker.count_unviewed(self._load_client(client_id), viewer_id, viewer_kind)

    def list_notes(
        self,
        client_id: str,
        year: Optional[int] = None,
        month: Optional[int] = None,
        viewer_id: Optional[str] = None,
        viewer_kind: Optional[ViewerKind] = None,
    ) -> List[Dict[str, Any]]:
        client = self._load_client(client_id)
        return visibility_tracker.list_notes(client, year, month, viewer_id, viewer_kind)

    def add_file_note(
        self,
        client_id: str,
        year: int,
        month: int,
        selector: CategorySelector,
        file_name: str,
        text: str,
        employee_id: str,
        employee_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Attach staff feedback to one file.

        Feedback is allowed on locked categories: it annotates a file and does
        not change the file set.
        """
        text = (text or "").strip()
        if not text:
            raise ValidationError("Note text is required")

        client = self._load_client(client_id)
        record = self._existing_month(client, year, month)
        file = find_file(record, selector, file_name)

        note = Note(
            text=text,
            added_by=employee_id,
            added_by_name=employee_name,
            added_at=datetime.utcnow(),
            employee_id=employee_id,
        )
        file.notes.append(note)
        self.clients.save(client)

        logger.info(f"Employee {employee_id} added feedback on {file_name} for client {client_id}")
        self._audit(
            AuditEventType.NOTE_ADD,
            action="add_file_note",
            resource_type="note",
            resource_id=self._resource_id(client_id, year, month),
            user_id=employee_id,
            user_role=ViewerKind.EMPLOYEE.value,
            details={"category": selector.label, "file_name": file_name, "note_id": note.note_id},
        )
        return {"client_id": client_id, "category": selector.label, "file_name": file_name, "note": note.to_dict()}

    def add_month_note(
        self,
        client_id: str,
        year: int,
        month: int,
        text: str,
        author_id: str,
        author_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Add a free-text note to a month, creating the month if needed."""
        text = (text or "").strip()
        if not text:
            raise ValidationError("Note text is required")

        def mutate(client, record) -> Note:
            note = Note(text=text, added_by=author_id, added_by_name=author_name)
            record.month_notes.append(note)
            return note

        _, note = self._mutate_month(client_id, year, month, mutate)
        self._audit(
            AuditEventType.NOTE_ADD,
            action="add_month_note",
            resource_type="note",
            resource_id=self._resource_id(client_id, year, month),
            user_id=author_id,
            details={"note_id": note.note_id},
        )
        return {"client_id": client_id, "year": year, "month": month, "note": note.to_dict()}

"""
Document Service

Upload, delete and replace flows for a client's monthly documents.

Every flow:
1. loads the client
2. checks the category is not locked (category flag before month flag)
3. enforces the update-note rule for previously locked categories
4. records reason notes on the category and the month
5. saves the client once and audits

Stored objects are never touched here. A delete or replace returns the
removed file descriptor so the caller can delete the bytes.
"""

import logging
from typing import Any, Dict, List, Optional

from audit.audit_logger import AuditEventType
from domain.aggregates import Client, MonthRecord
from domain.value_objects import CategorySelector, FileRecord
from practice_panel.documents.tree_store import attach_files, find_file, remove_file
from practice_panel.errors import ValidationError
from practice_panel.workflow.lock_cascade import ensure_mutable, record_change_note, require_update_note

from .client_document_service import ClientDocumentService

logger = logging.getLogger(__name__)


class DocumentService(ClientDocumentService):
    """Client document uploads and removals."""

    def ensure_month(self, client_id: str, year: int, month: int) -> MonthRecord:
        """Return the client month, creating it safely under concurrent first writers."""
        client, _ = self._mutate_month(client_id, year, month, lambda c, r: None)
        return client.get_month(year, month)

    def upload_files(
        self,
        client_id: str,
        year: int,
        month: int,
        selector: CategorySelector,
        files: List[FileRecord],
        actor: str,
        actor_name: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Append files to a category.

        Raises:
            LockedError: the category (or the month, for a new category) is locked
            ValidationError: no files, or a required update note is missing
        """
        if not files:
            raise ValidationError("At least one file is required")

        def mutate(client: Client, record: MonthRecord) -> Dict[str, Any]:
            ensure_mutable(record, selector)
            note_text = require_update_note(record.get_category(selector), note)
            category = attach_files(record, selector, files)
            if note_text:
                record_change_note(record, category, note_text, actor, actor_name)
            return {
                "files_count": len(category.files),
                "category_locked": category.is_locked,
                "note_recorded": bool(note_text),
            }

        client, outcome = self._mutate_month(client_id, year, month, mutate)

        logger.info(
            f"Uploaded {len(files)} file(s) to {selector.label} for client {client_id} "
            f"{year}-{month:02d} by {actor}"
        )
        self._audit(
            AuditEventType.DOCUMENT_UPLOAD,
            action="upload",
            resource_type="document",
            resource_id=self._resource_id(client_id, year, month),
            user_id=actor,
            details={"category": selector.label, "files": [f.file_name for f in files],
                     "note": outcome["note_recorded"]},
        )
        return {
            "client_id": client_id,
            "year": year,
            "month": month,
            "category": selector.label,
            "files_added": [f.to_dict() for f in files],
            **outcome,
        }

    def delete_file(
        self,
        client_id: str,
        year: int,
        month: int,
        selector: CategorySelector,
        file_name: str,
        actor: str,
        reason: str,
        actor_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Remove a file and record the deletion reason.

        Returns:
            Summary including `removed_file`, the descriptor of the stored
            object the caller should now delete
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A reason is required to delete a file")

        client = self._load_client(client_id)
        record = self._existing_month(client, year, month)
        ensure_mutable(record, selector)

        removed = remove_file(record, selector, file_name)
        category = record.get_category(selector)
        record_change_note(record, category, reason, actor, actor_name)
        self.clients.save(client)

        logger.info(f"Deleted {file_name} from {selector.label} for client {client_id} {year}-{month:02d}")
        self._audit(
            AuditEventType.DOCUMENT_DELETE,
            action="delete",
            resource_type="document",
            resource_id=self._resource_id(client_id, year, month),
            user_id=actor,
            details={"category": selector.label, "file_name": file_name, "reason": reason},
        )
        return {
            "client_id": client_id,
            "year": year,
            "month": month,
            "category": selector.label,
            "removed_file": removed.to_dict(),
            "files_count": len(category.files),
        }

    def replace_file(
        self,
        client_id: str,
        year: int,
        month: int,
        selector: CategorySelector,
        file_name: str,
        new_file: FileRecord,
        actor: str,
        note: Optional[str] = None,
        actor_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Swap one file for another in place.

        A previously locked category requires `note`.
        """
        client = self._load_client(client_id)
        record = self._existing_month(client, year, month)
        ensure_mutable(record, selector)

        find_file(record, selector, file_name)
        category = record.get_category(selector)
        note_text = require_update_note(category, note)

        removed = remove_file(record, selector, file_name)
        attach_files(record, selector, [new_file])
        if note_text:
            record_change_note(record, category, note_text, actor, actor_name)
        self.clients.save(client)

        logger.info(
            f"Replaced {file_name} with {new_file.file_name} in {selector.label} "
            f"for client {client_id} {year}-{month:02d}"
        )
        self._audit(
            AuditEventType.DOCUMENT_REPLACE,
            action="replace",
            resource_type="document",
            resource_id=self._resource_id(client_id, year, month),
            user_id=actor,
            details={"category": selector.label, "old_file": file_name,
                     "new_file": new_file.file_name, "note": bool(note_text)},
        )
        return {
            "client_id": client_id,
            "year": year,
            "month": month,
            "category": selector.label,
            "removed_file": removed.to_dict(),
            "file": new_file.to_dict(),
            "note_recorded": bool(note_text),
        }

    def get_month_documents(self, client_id: str, year: int, month: int) -> Dict[str, Any]:
        """Read-only view of one month's categories."""
        client = self._load_client(client_id)
        record = self._existing_month(client, year, month)
        return {
            "client_id": client_id,
            "year": year,
            "month": month,
            "is_locked": record.is_locked,
            "was_locked_once": record.was_locked_once,
            "accounting_done": record.accounting_done,
            "categories": {label: category.to_dict() for label, category in record.iter_categories()},
            "month_notes_count": len(record.month_notes),
        }

"""
Domain Value Objects for the Practice Document Engine.

Value objects describe the leaves of a client's document tree: notes, the
viewer ledger on each note, uploaded file descriptors, and the selector used
to address a category inside a month.
"""

from datetime import datetime
from typing import Optional, List, Dict, Any
from uuid import uuid4
from pydantic import BaseModel, Field, model_validator
from enum import Enum


# =============================================================================
# ENUMERATIONS
# =============================================================================

class TaskType(str, Enum):
    """Tasks an employee can be assigned for one client month."""
    BOOKKEEPING = "Bookkeeping"
    VAT_FILING_COMPUTATION = "VAT Filing Computation"
    VAT_FILING = "VAT Filing"
    FINANCIAL_STATEMENT_GENERATION = "Financial Statement Generation"


class ViewerKind(str, Enum):
    """Kind of identity recorded in a note's viewer ledger."""
    CLIENT = "client"
    EMPLOYEE = "employee"
    ADMIN = "admin"


class CategoryType(str, Enum):
    """The three fixed document buckets plus the open-ended 'other' list."""
    SALES = "sales"
    PURCHASE = "purchase"
    BANK = "bank"
    OTHER = "other"


STANDARD_CATEGORIES = (CategoryType.SALES, CategoryType.PURCHASE, CategoryType.BANK)


class NoteSource(str, Enum):
    """Viewpoint a note is attributed to in aggregated listings."""
    CLIENT = "client"
    EMPLOYEE = "employee"


class NoteType(str, Enum):
    """Where in the tree a note lives."""
    MONTH_NOTE = "month_note"
    DELETE_REASON = "delete_reason"
    FILE_FEEDBACK = "file_feedback"


# =============================================================================
# NOTES
# =============================================================================

class NoteView(BaseModel):
    """One entry in a note's viewer ledger."""
    viewer_id: str = Field(description="Identity of the viewer")
    viewer_kind: ViewerKind = Field(description="client, employee or admin")
    viewed_at: datetime = Field(default_factory=datetime.utcnow)


class Note(BaseModel):
    """
    Free-text annotation attached to a month, category or file.

    Notes are immutable once created except for the viewer ledger, which
    only grows. `is_viewed_by_client` mirrors the presence of a client entry
    in `viewed_by`.
    """
    note_id: str = Field(default_factory=lambda: uuid4().hex)
    text: str = Field(description="Note body")
    added_by: str = Field(description="Author identity")
    added_by_name: Optional[str] = Field(default=None)
    added_at: datetime = Field(default_factory=datetime.utcnow)
    employee_id: Optional[str] = Field(default=None, description="Set on staff feedback notes")

    viewed_by: List[NoteView] = Field(default_factory=list)
    is_viewed_by_client: bool = Field(default=False)

    def has_viewer(self, viewer_id: str, viewer_kind: Optional[ViewerKind] = None) -> bool:
        """Check the ledger for a viewer, optionally restricted to one kind."""
        for view in self.viewed_by:
            if view.viewer_id != viewer_id:
                continue
            if viewer_kind is None or view.viewer_kind == viewer_kind:
                return True
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "note_id": self.note_id,
            "text": self.text,
            "added_by": self.added_by,
            "added_by_name": self.added_by_name,
            "added_at": self.added_at.isoformat(),
            "employee_id": self.employee_id,
            "is_viewed_by_client": self.is_viewed_by_client,
            "viewed_by": [
                {
                    "viewer_id": v.viewer_id,
                    "viewer_kind": v.viewer_kind.value,
                    "viewed_at": v.viewed_at.isoformat(),
                }
                for v in self.viewed_by
            ],
        }


# =============================================================================
# FILES
# =============================================================================

class FileRecord(BaseModel):
    """Descriptor of an uploaded file. The bytes live in external storage."""
    url: str = Field(description="Location of the stored object")
    file_name: str = Field(description="Original file name")
    uploaded_by: str = Field(description="Uploader identity")
    uploaded_at: datetime = Field(default_factory=datetime.utcnow)
    file_size: int = Field(default=0, ge=0)
    file_type: Optional[str] = Field(default=None, description="Media type")

    # Stamped by the month cascade
    is_locked: bool = Field(default=False)
    locked_at: Optional[datetime] = None
    locked_by: Optional[str] = None

    notes: List[Note] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "file_name": self.file_name,
            "uploaded_by": self.uploaded_by,
            "uploaded_at": self.uploaded_at.isoformat(),
            "file_size": self.file_size,
            "file_type": self.file_type,
            "is_locked": self.is_locked,
            "notes_count": len(self.notes),
        }


# =============================================================================
# CATEGORY SELECTOR
# =============================================================================

class CategorySelector(BaseModel):
    """
    Addresses one category inside a month.

    Either a standard category (sales, purchase, bank) or an 'other'
    category identified by its caller-chosen name.
    """
    model_config = {"frozen": True}

    category: CategoryType
    name: Optional[str] = Field(default=None, description="Required for 'other' categories")

    @model_validator(mode="after")
    def _check_name(self) -> "CategorySelector":
        if self.category == CategoryType.OTHER:
            if not self.name or not self.name.strip():
                raise ValueError("An 'other' category requires a category name")
        elif self.name is not None:
            raise ValueError(f"Category '{self.category.value}' does not take a name")
        return self

    @classmethod
    def standard(cls, category: str) -> "CategorySelector":
        return cls(category=CategoryType(category))

    @classmethod
    def other(cls, name: str) -> "CategorySelector":
        return cls(category=CategoryType.OTHER, name=name)

    @classmethod
    def parse(cls, category: str, name: Optional[str] = None) -> "CategorySelector":
        """Build a selector from loose request values."""
        category_type = CategoryType(category)
        if category_type == CategoryType.OTHER:
            return cls.other(name or "")
        return cls(category=category_type)

    @property
    def is_other(self) -> bool:
        return self.category == CategoryType.OTHER

    @property
    def label(self) -> str:
        return self.name if self.is_other else self.category.value

"""
Domain Aggregates for the Practice Document Engine.

Two aggregate roots exist: Client and Employee. Each is loaded and saved as a
single document. A task assignment is stored twice, once on each root, and
the two copies share an assignment_id.

Tree shape under a client:

    documents[year][month] -> MonthRecord
        sales / purchase / bank -> CategoryDocument
        other[]                 -> OtherCategory(category_name, document)
            files[]             -> FileRecord
                notes[]         -> Note
"""

from datetime import datetime
from typing import Optional, List, Dict, Any, Iterator, Tuple
from uuid import uuid4
from pydantic import BaseModel, Field

from .value_objects import (
    Note,
    FileRecord,
    TaskType,
    CategorySelector,
    CategoryType,
    STANDARD_CATEGORIES,
)


# =============================================================================
# DOCUMENT TREE
# =============================================================================

class CategoryDocument(BaseModel):
    """
    Files and notes for one category of one month.

    `was_locked_once` flips to True on the first lock and never reverts; it
    decides whether later uploads need an explanatory note.
    """
    files: List[FileRecord] = Field(default_factory=list)
    category_notes: List[Note] = Field(default_factory=list)

    is_locked: bool = Field(default=False)
    was_locked_once: bool = Field(default=False)
    locked_at: Optional[datetime] = None
    locked_by: Optional[str] = None
    unlocked_at: Optional[datetime] = None
    unlocked_by: Optional[str] = None

    def find_file(self, file_name: str) -> Optional[FileRecord]:
        for file in self.files:
            if file.file_name == file_name:
                return file
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": [f.to_dict() for f in self.files],
            "files_count": len(self.files),
            "notes_count": len(self.category_notes),
            "is_locked": self.is_locked,
            "was_locked_once": self.was_locked_once,
            "locked_at": self.locked_at.isoformat() if self.locked_at else None,
            "locked_by": self.locked_by,
        }


class OtherCategory(BaseModel):
    """A caller-named category."""
    category_name: str
    document: CategoryDocument = Field(default_factory=CategoryDocument)


class MonthRecord(BaseModel):
    """
    One client month.

    Created lazily on first upload or first lock and never deleted.
    """
    sales: CategoryDocument = Field(default_factory=CategoryDocument)
    purchase: CategoryDocument = Field(default_factory=CategoryDocument)
    bank: CategoryDocument = Field(default_factory=CategoryDocument)
    other: List[OtherCategory] = Field(default_factory=list)

    is_locked: bool = Field(default=False)
    was_locked_once: bool = Field(default=False)
    locked_at: Optional[datetime] = None
    locked_by: Optional[str] = None
    unlocked_at: Optional[datetime] = None
    unlocked_by: Optional[str] = None
    auto_lock_date: Optional[datetime] = None

    month_notes: List[Note] = Field(default_factory=list)
    accounting_done: bool = Field(default=False)

    def find_other(self, name: str) -> Optional[OtherCategory]:
        for entry in self.other:
            if entry.category_name == name:
                return entry
        return None

    def get_category(self, selector: CategorySelector) -> Optional[CategoryDocument]:
        """Return the addressed category, or None for a missing 'other' entry."""
        if selector.is_other:
            entry = self.find_other(selector.name)
            return entry.document if entry else None
        return getattr(self, selector.category.value)

    def iter_categories(self) -> Iterator[Tuple[str, CategoryDocument]]:
        """Yield (label, category) for standard then 'other' categories."""
        for category_type in STANDARD_CATEGORIES:
            yield category_type.value, getattr(self, category_type.value)
        for entry in self.other:
            yield entry.category_name, entry.document

    def has_files(self) -> bool:
        return any(category.files for _, category in self.iter_categories())

    def files_count(self) -> int:
        return sum(len(category.files) for _, category in self.iter_categories())


# =============================================================================
# ASSIGNMENTS
# =============================================================================

class Assignment(BaseModel):
    """
    One task assignment for a client month.

    The same logical assignment lives on the client and on the employee. Both
    copies carry the same assignment_id and must agree on task, period,
    completion and removal state.
    """
    assignment_id: str = Field(default_factory=lambda: uuid4().hex)
    year: int
    month: int
    task: TaskType

    client_id: str
    client_name: Optional[str] = None
    employee_id: str
    employee_name: Optional[str] = None

    assigned_by: str
    assigned_by_name: Optional[str] = None
    assigned_at: datetime = Field(default_factory=datetime.utcnow)

    accounting_done: bool = Field(default=False)
    accounting_done_at: Optional[datetime] = None
    accounting_done_by: Optional[str] = None

    is_removed: bool = Field(default=False)
    removed_at: Optional[datetime] = None
    removed_by: Optional[str] = None
    removal_reason: Optional[str] = None

    def matches(self, year: int, month: int, task: Optional[TaskType] = None) -> bool:
        if self.year != year or self.month != month:
            return False
        return task is None or self.task == task

    def to_dict(self) -> Dict[str, Any]:
        return {
            "assignment_id": self.assignment_id,
            "year": self.year,
            "month": self.month,
            "task": self.task.value,
            "client_id": self.client_id,
            "client_name": self.client_name,
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "assigned_by": self.assigned_by,
            "assigned_at": self.assigned_at.isoformat(),
            "accounting_done": self.accounting_done,
            "accounting_done_at": self.accounting_done_at.isoformat() if self.accounting_done_at else None,
            "accounting_done_by": self.accounting_done_by,
            "is_removed": self.is_removed,
            "removed_at": self.removed_at.isoformat() if self.removed_at else None,
            "removed_by": self.removed_by,
            "removal_reason": self.removal_reason,
        }


class RemovalRecord(BaseModel):
    """History entry handed to the audit sink when an assignment is removed."""
    assignment_id: str
    client_id: str
    client_name: Optional[str] = None
    employee_id: str
    employee_name: Optional[str] = None
    year: int
    month: int
    task: TaskType
    assigned_at: datetime
    assigned_by: str
    removed_at: datetime
    removed_by: str
    removal_reason: Optional[str] = None
    was_accounting_done: bool = False
    duration_days: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


# =============================================================================
# AGGREGATE ROOTS
# =============================================================================

class Client(BaseModel):
    """
    Client Aggregate Root.

    Invariants (per year, month):
    - active assignments use the fixed task enumeration
    - at most one active assignment per task
    - at most four active assignments
    """
    client_id: str
    name: str = ""
    email: Optional[str] = None
    is_active: bool = True

    # documents["2025"]["3"] -> MonthRecord
    documents: Dict[str, Dict[str, MonthRecord]] = Field(default_factory=dict)
    employee_assignments: List[Assignment] = Field(default_factory=list)

    version: int = Field(default=0, description="Bumped by the repository on every save")
    updated_at: Optional[datetime] = None

    def get_month(self, year: int, month: int) -> Optional[MonthRecord]:
        return self.documents.get(str(year), {}).get(str(month))

    def iter_months(self) -> Iterator[Tuple[int, int, MonthRecord]]:
        for year_key, months in self.documents.items():
            for month_key, record in months.items():
                yield int(year_key), int(month_key), record

    def active_assignments(self, year: int, month: int) -> List[Assignment]:
        return [
            a for a in self.employee_assignments
            if not a.is_removed and a.matches(year, month)
        ]


class Employee(BaseModel):
    """Employee Aggregate Root holding the mirrored assignment copies."""
    employee_id: str
    name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool = True
    deactivated_at: Optional[datetime] = None
    deactivated_by: Optional[str] = None

    assigned_clients: List[Assignment] = Field(default_factory=list)

    version: int = Field(default=0, description="Bumped by the repository on every save")
    updated_at: Optional[datetime] = None

    def active_assignments(self, year: Optional[int] = None, month: Optional[int] = None) -> List[Assignment]:
        result = []
        for a in self.assigned_clients:
            if a.is_removed:
                continue
            if year is not None and a.year != year:
                continue
            if month is not None and a.month != month:
                continue
            result.append(a)
        return result


__all__ = [
    "CategoryDocument",
    "OtherCategory",
    "MonthRecord",
    "Assignment",
    "RemovalRecord",
    "Client",
    "Employee",
    "CategoryType",
]

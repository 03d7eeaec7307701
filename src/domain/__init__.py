"""
Domain layer for the Practice Document Engine.

This module contains the client and employee aggregates, the value objects
that make up a client's document tree, and the repository interfaces.
"""

from .value_objects import (
    TaskType,
    ViewerKind,
    CategoryType,
    STANDARD_CATEGORIES,
    NoteSource,
    NoteType,
    NoteView,
    Note,
    FileRecord,
    CategorySelector,
)
from .aggregates import (
    CategoryDocument,
    OtherCategory,
    MonthRecord,
    Assignment,
    RemovalRecord,
    Client,
    Employee,
)
from .repositories import (
    IRepository,
    IClientRepository,
    IEmployeeRepository,
)

__all__ = [
    # Value Objects
    "TaskType",
    "ViewerKind",
    "CategoryType",
    "STANDARD_CATEGORIES",
    "NoteSource",
    "NoteType",
    "NoteView",
    "Note",
    "FileRecord",
    "CategorySelector",
    # Aggregates
    "CategoryDocument",
    "OtherCategory",
    "MonthRecord",
    "Assignment",
    "RemovalRecord",
    "Client",
    "Employee",
    # Repositories
    "IRepository",
    "IClientRepository",
    "IEmployeeRepository",
]

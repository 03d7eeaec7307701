"""
Database Layer for the Practice Document Engine.

This module provides:
- SQLAlchemy ORM records holding client and employee JSON documents
- Sync engine and session management
- SQL and in-memory implementations of the domain repositories
"""

from .models import Base, ClientRecord, EmployeeRecord
from .connection import (
    build_engine,
    get_sync_engine,
    get_sync_session_factory,
    get_db_session,
    session_scope,
    close_sync_engine,
)
from .memory_repository import InMemoryClientRepository, InMemoryEmployeeRepository
from .document_store import SqlClientRepository, SqlEmployeeRepository

__all__ = [
    "Base",
    "ClientRecord",
    "EmployeeRecord",
    "build_engine",
    "get_sync_engine",
    "get_sync_session_factory",
    "get_db_session",
    "session_scope",
    "close_sync_engine",
    "InMemoryClientRepository",
    "InMemoryEmployeeRepository",
    "SqlClientRepository",
    "SqlEmployeeRepository",
]

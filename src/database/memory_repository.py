"""
In-memory document repositories.

Thread-safe but not persistent. Every read returns a deep copy and every
write stores a deep copy, so callers never share mutable state with the
store, matching the load/mutate/save discipline of the real backend.
"""

import threading
from datetime import datetime
from typing import Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel

from domain.aggregates import Client, Employee
from domain.repositories import IClientRepository, IEmployeeRepository

T = TypeVar("T", bound=BaseModel)


class _InMemoryDocumentRepository(Generic[T]):
    """Shared storage logic keyed by an id attribute on the entity."""

    id_attr: str = ""

    def __init__(self):
        self._documents: Dict[str, T] = {}
        self._lock = threading.Lock()

    def _key(self, entity: T) -> str:
        return getattr(entity, self.id_attr)

    def _store(self, entity: T, version: int) -> None:
        entity.version = version
        entity.updated_at = datetime.utcnow()
        self._documents[self._key(entity)] = entity.model_copy(deep=True)

    def get(self, id: str) -> Optional[T]:
        with self._lock:
            stored = self._documents.get(id)
            return stored.model_copy(deep=True) if stored is not None else None

    def save(self, entity: T) -> T:
        with self._lock:
            stored = self._documents.get(self._key(entity))
            current = stored.version if stored is not None else 0
            self._store(entity, current + 1)
        return entity

    def save_with_version(self, entity: T, expected_version: int) -> bool:
        with self._lock:
            stored = self._documents.get(self._key(entity))
            current = stored.version if stored is not None else 0
            if current != expected_version:
                return False
            self._store(entity, current + 1)
        return True

    def list_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._documents.keys())

    def clear(self) -> None:
        with self._lock:
            self._documents.clear()


class InMemoryClientRepository(_InMemoryDocumentRepository[Client], IClientRepository):
    """In-memory Client store for tests and local development."""
    id_attr = "client_id"


class InMemoryEmployeeRepository(_InMemoryDocumentRepository[Employee], IEmployeeRepository):
    """In-memory Employee store for tests and local development."""
    id_attr = "employee_id"

"""
SQLAlchemy-backed document repositories.

Stores each Client and Employee as one JSON payload row. Plain saves are
last-write-wins; optimistic saves issue

    UPDATE ... SET payload = :payload, version = version + 1
    WHERE id = :id AND version = :expected

and report a conflict when no row matched.
"""

import logging
from datetime import datetime
from typing import Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from domain.aggregates import Client, Employee
from domain.repositories import IClientRepository, IEmployeeRepository
from .connection import session_scope, get_sync_session_factory
from .models import Base, ClientRecord, EmployeeRecord

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class _SqlDocumentRepository(Generic[T]):
    """Shared JSON-document persistence for one aggregate type."""

    record_cls: Type = None
    entity_cls: Type[T] = None
    id_attr: str = ""

    def __init__(self, session_factory: Optional[sessionmaker] = None, create_tables: bool = True):
        self._session_factory = session_factory or get_sync_session_factory()
        if create_tables:
            Base.metadata.create_all(self._session_factory.kw["bind"])

    def _id_column(self):
        return getattr(self.record_cls, self.id_attr)

    def _to_entity(self, record) -> T:
        entity = self.entity_cls.model_validate(record.payload)
        entity.version = record.version
        entity.updated_at = record.updated_at
        return entity

    @staticmethod
    def _payload(entity: T) -> dict:
        return entity.model_dump(mode="json", exclude={"version", "updated_at"})

    def get(self, id: str) -> Optional[T]:
        with session_scope(self._session_factory) as session:
            record = session.get(self.record_cls, id)
            return self._to_entity(record) if record is not None else None

    def save(self, entity: T) -> T:
        entity_id = getattr(entity, self.id_attr)
        now = datetime.utcnow()

        with session_scope(self._session_factory) as session:
            record = session.get(self.record_cls, entity_id)
            if record is None:
                record = self.record_cls(**{self.id_attr: entity_id}, version=0, created_at=now)
                session.add(record)
            record.name = entity.name
            record.is_active = entity.is_active
            record.payload = self._payload(entity)
            record.version = (record.version or 0) + 1
            record.updated_at = now
            session.flush()
            entity.version = record.version

        entity.updated_at = now
        return entity

    def save_with_version(self, entity: T, expected_version: int) -> bool:
        entity_id = getattr(entity, self.id_attr)
        now = datetime.utcnow()

        if expected_version == 0:
            # Insert-only: a concurrent creator wins via the primary key
            try:
                with session_scope(self._session_factory) as session:
                    session.add(self.record_cls(
                        **{self.id_attr: entity_id},
                        name=entity.name,
                        is_active=entity.is_active,
                        payload=self._payload(entity),
                        version=1,
                        created_at=now,
                        updated_at=now,
                    ))
            except IntegrityError:
                logger.info(f"{self.entity_cls.__name__} {entity_id} already created by another writer")
                return False
            entity.version = 1
            entity.updated_at = now
            return True

        with session_scope(self._session_factory) as session:
            result = session.execute(
                update(self.record_cls)
                .where(self._id_column() == entity_id)
                .where(self.record_cls.version == expected_version)
                .values(
                    name=entity.name,
                    is_active=entity.is_active,
                    payload=self._payload(entity),
                    version=self.record_cls.version + 1,
                    updated_at=now,
                )
            )
            if result.rowcount != 1:
                logger.info(
                    f"Version conflict saving {self.entity_cls.__name__} {entity_id} "
                    f"(expected v{expected_version})"
                )
                return False

        entity.version = expected_version + 1
        entity.updated_at = now
        return True

    def list_ids(self) -> List[str]:
        with session_scope(self._session_factory) as session:
            rows = session.execute(select(self._id_column()).order_by(self._id_column()))
            return [row[0] for row in rows]


class SqlClientRepository(_SqlDocumentRepository[Client], IClientRepository):
    """Client documents in the `clients` table."""
    record_cls = ClientRecord
    entity_cls = Client
    id_attr = "client_id"


class SqlEmployeeRepository(_SqlDocumentRepository[Employee], IEmployeeRepository):
    """Employee documents in the `employees` table."""
    record_cls = EmployeeRecord
    entity_cls = Employee
    id_attr = "employee_id"

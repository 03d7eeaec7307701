"""
SQLAlchemy ORM Models for client and employee documents.

Each aggregate root is stored as one row holding its full JSON document and a
version counter. Writes replace the whole document; optimistic writes compare
the version column before replacing it.
"""

from datetime import datetime

from sqlalchemy import Column, String, Integer, Boolean, DateTime, JSON, Index
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator


# Cross-database compatible JSON type
# Uses JSONB on PostgreSQL, JSON on SQLite/others
class JSONB(TypeDecorator):
    """A portable JSONB type that works with both PostgreSQL and SQLite."""
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(PG_JSONB())
        else:
            return dialect.type_descriptor(JSON())


Base = declarative_base()


class ClientRecord(Base):
    """Client document: document tree plus client-side assignment copies."""
    __tablename__ = "clients"

    client_id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)
    payload = Column(JSONB, nullable=False)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_clients_active", "is_active"),
    )

    def __repr__(self):
        return f"<ClientRecord {self.client_id} v{self.version}>"


class EmployeeRecord(Base):
    """Employee document: profile plus employee-side assignment copies."""
    __tablename__ = "employees"

    employee_id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)
    payload = Column(JSONB, nullable=False)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_employees_active", "is_active"),
    )

    def __repr__(self):
        return f"<EmployeeRecord {self.employee_id} v{self.version}>"

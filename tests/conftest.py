"""Pytest configuration and fixtures for test suite."""

import os
import sys
from datetime import datetime
from pathlib import Path
from unittest.mock import Mock

import pytest

# Set test environment BEFORE any other imports
os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("DB_SQLITE_PATH", ":memory:")

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


# =============================================================================
# BUILDERS
# =============================================================================

def _make_file(name: str = "invoice.pdf", uploaded_by: str = "C1", **kwargs):
    """Build a FileRecord with sensible defaults."""
    from domain.value_objects import FileRecord

    return FileRecord(
        url=kwargs.pop("url", f"https://files.example.com/{name}"),
        file_name=name,
        uploaded_by=uploaded_by,
        file_size=kwargs.pop("file_size", 1024),
        file_type=kwargs.pop("file_type", "application/pdf"),
        **kwargs,
    )


def _make_note(text: str = "Please check", added_by: str = "C1", **kwargs):
    from domain.value_objects import Note

    return Note(text=text, added_by=added_by, **kwargs)


# =============================================================================
# SETTINGS AND COLLABORATORS
# =============================================================================

@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment's audit file."""
    from config.settings import Settings

    return Settings(
        environment="test",
        audit_db_path=str(tmp_path / "audit.db"),
        notifications_enabled=True,
    )


@pytest.fixture
def audit_logger():
    """Audit sink double; calls are recorded, nothing is written."""
    return Mock()


@pytest.fixture
def email_provider():
    from notifications.email_provider import NullEmailProvider

    return NullEmailProvider()


@pytest.fixture
def notifier(email_provider):
    from notifications.assignment_notifier import AssignmentNotifier

    return AssignmentNotifier(provider=email_provider)


# =============================================================================
# REPOSITORIES AND SEED DATA
# =============================================================================

@pytest.fixture
def client_repo():
    from database.memory_repository import InMemoryClientRepository

    return InMemoryClientRepository()


@pytest.fixture
def employee_repo():
    from database.memory_repository import InMemoryEmployeeRepository

    return InMemoryEmployeeRepository()


@pytest.fixture
def client(client_repo):
    """Client C1 stored without any documents."""
    from domain.aggregates import Client

    c = Client(client_id="C1", name="Acme Trading", email="accounts@acme.example.com")
    client_repo.save(c)
    return c


@pytest.fixture
def client_with_documents(client_repo, client):
    """Client C1 with two sales files in March 2025."""
    from domain.value_objects import CategorySelector
    from practice_panel.documents.tree_store import attach_files, get_or_create_month

    stored = client_repo.get("C1")
    record = get_or_create_month(stored, 2025, 3)
    attach_files(record, CategorySelector.standard("sales"), [_make_file("inv-1.pdf"), _make_file("inv-2.pdf")])
    client_repo.save(stored)
    return client_repo.get("C1")


@pytest.fixture
def employees(employee_repo):
    """Employees E1 and E2, both reachable by email."""
    from domain.aggregates import Employee

    e1 = Employee(employee_id="E1", name="Dana Reyes", email="dana@practice.example.com")
    e2 = Employee(employee_id="E2", name="Sam Okafor", email="sam@practice.example.com")
    employee_repo.save(e1)
    employee_repo.save(e2)
    return e1, e2


@pytest.fixture
def assignment_manager(client_repo, employee_repo, audit_logger, notifier, settings):
    from practice_panel.staff import AssignmentManager

    return AssignmentManager(
        client_repo, employee_repo, audit_logger=audit_logger, notifier=notifier, settings=settings,
    )


@pytest.fixture
def fixed_now():
    return datetime(2025, 4, 26, 0, 0, 5)


@pytest.fixture
def make_file():
    """Factory for FileRecord objects."""
    return _make_file


@pytest.fixture
def make_note():
    """Factory for Note objects."""
    return _make_note

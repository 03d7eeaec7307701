"""
Services Module - Application services for the Practice Document Engine.

Application Services (orchestration over stored clients and employees):
- DocumentService: upload, delete and replace flows
- LockService: month and category locks, monthly auto-lock
- NoteService: note visibility and staff feedback
- DashboardService: client and employee summaries
- AssignmentManager: paired task assignment writes

Infrastructure Services:
- Logging and observability
"""

from typing import Optional

from .logging_config import configure_logging, get_logger

# Shared wiring, built lazily on first use
_client_repository = None
_employee_repository = None
_document_service = None
_lock_service = None
_note_service = None
_dashboard_service = None
_assignment_manager = None


def _repositories():
    global _client_repository, _employee_repository
    if _client_repository is None:
        from database import SqlClientRepository
        _client_repository = SqlClientRepository()
    if _employee_repository is None:
        from database import SqlEmployeeRepository
        _employee_repository = SqlEmployeeRepository()
    return _client_repository, _employee_repository


def _audit_logger():
    from audit.audit_logger import get_audit_logger
    from config.settings import get_settings
    return get_audit_logger(get_settings().audit_db_path)


def get_document_service():
    """Get DocumentService instance."""
    global _document_service
    if _document_service is None:
        from .document_service import DocumentService
        clients, _ = _repositories()
        _document_service = DocumentService(clients, _audit_logger())
    return _document_service


def get_lock_service():
    """Get LockService instance."""
    global _lock_service
    if _lock_service is None:
        from .lock_service import LockService
        clients, _ = _repositories()
        _lock_service = LockService(clients, _audit_logger())
    return _lock_service


def get_note_service():
    """Get NoteService instance."""
    global _note_service
    if _note_service is None:
        from .note_service import NoteService
        clients, _ = _repositories()
        _note_service = NoteService(clients, _audit_logger())
    return _note_service


def get_dashboard_service():
    """Get DashboardService instance."""
    global _dashboard_service
    if _dashboard_service is None:
        from .dashboard_service import DashboardService
        clients, employees = _repositories()
        _dashboard_service = DashboardService(clients, employees, _audit_logger())
    return _dashboard_service


def get_assignment_manager():
    """Get AssignmentManager instance.

    Emails go through the configured provider when notifications are
    enabled in settings.
    """
    global _assignment_manager
    if _assignment_manager is None:
        from config.settings import get_settings
        from notifications import AssignmentNotifier
        from practice_panel.staff import AssignmentManager

        settings = get_settings()
        clients, employees = _repositories()
        _assignment_manager = AssignmentManager(
            clients,
            employees,
            audit_logger=_audit_logger(),
            notifier=AssignmentNotifier(enabled=settings.notifications_enabled),
            settings=settings,
        )
    return _assignment_manager


def reset_services(client_repository=None, employee_repository=None) -> None:
    """
    Drop cached service instances.

    Args:
        client_repository: Optional repository the rebuilt services will use
        employee_repository: Optional repository the rebuilt services will use
    """
    global _client_repository, _employee_repository
    global _document_service, _lock_service, _note_service, _dashboard_service, _assignment_manager

    _client_repository = client_repository
    _employee_repository = employee_repository
    _document_service = None
    _lock_service = None
    _note_service = None
    _dashboard_service = None
    _assignment_manager = None


__all__ = [
    "configure_logging",
    "get_logger",
    "get_document_service",
    "get_lock_service",
    "get_note_service",
    "get_dashboard_service",
    "get_assignment_manager",
    "reset_services",
]

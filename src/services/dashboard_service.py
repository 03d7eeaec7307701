"""
Dashboard Service

Read-only summaries for the client portal and the staff workspace.
"""

import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional

from audit.audit_logger import AuditLogger
from config.settings import Settings
from domain.repositories import IClientRepository, IEmployeeRepository
from domain.value_objects import TaskType, ViewerKind
from practice_panel.errors import NotFoundError
from practice_panel.notes.visibility_tracker import count_unviewed

from .client_document_service import ClientDocumentService

logger = logging.getLogger(__name__)


class DashboardService(ClientDocumentService):
    """Aggregated views over clients and employees."""

    def __init__(
        self,
        client_repository: IClientRepository,
        employee_repository: IEmployeeRepository,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(client_repository, audit_logger, settings)
        self.employees = employee_repository

    def client_summary(
        self,
        client_id: str,
        viewer_id: Optional[str] = None,
        viewer_kind: Optional[ViewerKind] = None,
    ) -> Dict[str, Any]:
        """
        Per-month overview of a client.

        Months are listed newest first with file counts, lock state and the
        task status. `unviewed_notes` counts notes the viewer has not seen.
        """
        client = self._load_client(client_id)

        months: List[Dict[str, Any]] = []
        for year, month, record in sorted(client.iter_months(), key=lambda m: (m[0], m[1]), reverse=True):
            active = client.active_assignments(year, month)
            months.append({
                "year": year,
                "month": month,
                "files_count": record.files_count(),
                "categories": {
                    label: {"files_count": len(category.files), "is_locked": category.is_locked}
                    for label, category in record.iter_categories()
                },
                "is_locked": record.is_locked,
                "was_locked_once": record.was_locked_once,
                "accounting_done": record.accounting_done,
                "assigned_tasks": len(active),
                "completed_tasks": sum(1 for a in active if a.accounting_done),
                "unassigned_tasks": [
                    t.value for t in TaskType if t not in {a.task for a in active}
                ],
            })

        summary = {
            "client_id": client.client_id,
            "name": client.name,
            "is_active": client.is_active,
            "months": months,
            "total_files": sum(m["files_count"] for m in months),
        }
        if viewer_id is not None:
            summary["unviewed_notes"] = count_unviewed(client, viewer_id, viewer_kind)
        return summary

    def employee_summary(self, employee_id: str) -> Dict[str, Any]:
        """Active assignments of an employee grouped by client and period."""
        employee = self.employees.get(employee_id)
        if employee is None:
            raise NotFoundError(f"Employee not found: {employee_id}", details={"employee_id": employee_id})

        grouped: Dict[str, Dict[str, Any]] = {}
        periods: Dict[str, Dict[str, List[Dict[str, Any]]]] = defaultdict(lambda: defaultdict(list))
        for a in employee.active_assignments():
            grouped.setdefault(a.client_id, {"client_id": a.client_id, "client_name": a.client_name})
            periods[a.client_id][f"{a.year}-{a.month:02d}"].append({
                "assignment_id": a.assignment_id,
                "task": a.task.value,
                "accounting_done": a.accounting_done,
                "assigned_at": a.assigned_at.isoformat(),
            })

        clients = []
        for client_id, entry in grouped.items():
            entry["periods"] = [
                {"period": period, "tasks": tasks}
                for period, tasks in sorted(periods[client_id].items(), reverse=True)
            ]
            clients.append(entry)

        active = employee.active_assignments()
        return {
            "employee_id": employee.employee_id,
            "name": employee.name,
            "is_active": employee.is_active,
            "clients": clients,
            "total_tasks": len(active),
            "pending_tasks": sum(1 for a in active if not a.accounting_done),
            "completed_tasks": sum(1 for a in active if a.accounting_done),
        }

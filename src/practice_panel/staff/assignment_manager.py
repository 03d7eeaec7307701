"""
Assignment Consistency Manager

Task assignments for a client month are stored twice:
- on the client, in `employee_assignments`
- on the employee, in `assigned_clients`

Both copies share an assignment_id and must agree on task, period,
completion and removal state. No transaction spans the two documents, so
every change is a paired write:

    1. save the client
    2. save the employee
    3. if (2) fails, undo the client change, save the client again and raise
       PartialFailureError carrying the rollback outcome

A pair whose copies disagree is reported as InconsistencyError and left for
an operator; it is never repaired here.

Lifecycle per assignment:
    Active(accounting_done=False) -> Active(accounting_done=True)
    Active(accounting_done=False) -> Removed
Removal of a completed task is refused.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from audit.audit_logger import AuditEventType, AuditLogger, audit_safely, record_removal_safely
from config.settings import Settings, get_settings
from domain.aggregates import Assignment, Client, Employee, RemovalRecord
from domain.repositories import IClientRepository, IEmployeeRepository
from domain.value_objects import TaskType
from notifications.assignment_notifier import AssignmentNotifier

from ..documents.tree_store import month_has_documents, validate_period
from ..errors import (
    CapacityError,
    ConflictError,
    InconsistencyError,
    NotFoundError,
    PartialFailureError,
    PreconditionError,
    ValidationError,
)

logger = logging.getLogger(__name__)


@dataclass
class AssignmentPair:
    """The client-side and employee-side copies of one assignment."""
    client_assignment: Assignment
    employee_assignment: Assignment

    def to_dict(self) -> Dict[str, Any]:
        a = self.client_assignment
        return {
            "assignment_id": a.assignment_id,
            "client_id": a.client_id,
            "client_name": a.client_name,
            "employee_id": a.employee_id,
            "employee_name": a.employee_name,
            "year": a.year,
            "month": a.month,
            "task": a.task.value,
            "assigned_at": a.assigned_at.isoformat(),
            "assigned_by": a.assigned_by,
            "accounting_done": a.accounting_done,
            "is_removed": a.is_removed,
        }


def parse_task(task) -> TaskType:
    """Convert a task value to TaskType, raising ValidationError if unknown."""
    if isinstance(task, TaskType):
        return task
    try:
        return TaskType(task)
    except ValueError:
        raise ValidationError(
            f"Invalid task: {task}",
            details={"task": task, "allowed": [t.value for t in TaskType]},
        )


def _task_value(task) -> str:
    return task.value if isinstance(task, TaskType) else str(task)


class AssignmentManager:
    """
    Keeps client and employee assignment copies consistent.

    Collaborators:
    - audit_logger: fire-and-forget activity and removal history
    - notifier: best-effort emails to the affected employee
    """

    def __init__(
        self,
        client_repository: IClientRepository,
        employee_repository: IEmployeeRepository,
        audit_logger: Optional[AuditLogger] = None,
        notifier: Optional[AssignmentNotifier] = None,
        settings: Optional[Settings] = None,
    ):
        self.clients = client_repository
        self.employees = employee_repository
        self.audit_logger = audit_logger
        self.notifier = notifier
        self.settings = settings or get_settings()

    # =========================================================================
    # LOADING
    # =========================================================================

    def _load_client(self, client_id: str) -> Client:
        client = self.clients.get(client_id)
        if client is None:
            raise NotFoundError(f"Client not found: {client_id}", details={"client_id": client_id})
        return client

    def _load_employee(self, employee_id: str) -> Employee:
        employee = self.employees.get(employee_id)
        if employee is None:
            raise NotFoundError(f"Employee not found: {employee_id}", details={"employee_id": employee_id})
        return employee

    @staticmethod
    def _find_pair(
        client: Client,
        employee: Employee,
        year: int,
        month: int,
        task: TaskType,
    ) -> Tuple[Optional[Assignment], Optional[Assignment]]:
        client_side = next(
            (a for a in client.employee_assignments
             if not a.is_removed and a.employee_id == employee.employee_id and a.matches(year, month, task)),
            None,
        )
        employee_side = next(
            (a for a in employee.assigned_clients
             if not a.is_removed and a.client_id == client.client_id and a.matches(year, month, task)),
            None,
        )
        return client_side, employee_side

    def _locate_active_pair(
        self,
        client: Client,
        employee: Employee,
        year: int,
        month: int,
        task: TaskType,
    ) -> Tuple[Assignment, Assignment]:
        """
        Find the matching active copy on each side.

        Raises:
            NotFoundError: neither side has an active copy
            ConflictError: only removed copies exist
            InconsistencyError: exactly one side has an active copy
        """
        client_side, employee_side = self._find_pair(client, employee, year, month, task)
        details = {
            "client_id": client.client_id,
            "employee_id": employee.employee_id,
            "year": year,
            "month": month,
            "task": task.value,
        }

        if client_side is None and employee_side is None:
            previously_removed = any(
                a.is_removed and a.employee_id == employee.employee_id and a.matches(year, month, task)
                for a in client.employee_assignments
            )
            if previously_removed:
                raise ConflictError("Assignment already removed", details=details)
            raise NotFoundError("Assignment not found", details=details)

        if client_side is None or employee_side is None:
            details["missing_side"] = "client" if client_side is None else "employee"
            logger.error(
                f"Assignment copies disagree for {client.client_id}/{employee.employee_id} "
                f"{year}-{month:02d} {task.value}: {details['missing_side']} copy missing"
            )
            raise InconsistencyError(
                f"Assignment exists only on the {'employee' if client_side is None else 'client'} record",
                details=details,
            )

        return client_side, employee_side

    # =========================================================================
    # PAIRED WRITE
    # =========================================================================

    def _paired_write(
        self,
        client: Client,
        employee: Employee,
        undo_client: Callable[[Client], None],
        operation: str,
    ) -> None:
        """Save client then employee, compensating on the client if the employee save fails."""
        self.clients.save(client)

        try:
            self.employees.save(employee)
        except Exception as e:
            logger.error(
                f"{operation}: employee {employee.employee_id} save failed after client "
                f"{client.client_id} was saved: {e}"
            )
            try:
                undo_client(client)
                self.clients.save(client)
            except Exception as rollback_error:
                logger.critical(
                    f"{operation}: rollback of client {client.client_id} failed: {rollback_error}"
                )
                raise PartialFailureError(
                    f"{operation} failed and rollback did not complete",
                    rollback_completed=False,
                    original_error=e,
                    rollback_error=rollback_error,
                    details={"client_id": client.client_id, "employee_id": employee.employee_id},
                ) from e

            audit_safely(
                self.audit_logger,
                AuditEventType.ASSIGNMENT_ROLLBACK,
                action=operation,
                resource_type="assignment",
                resource_id=f"{client.client_id}:{employee.employee_id}",
                success=False,
                error_message=str(e),
            )
            raise PartialFailureError(
                f"{operation} failed, rollback completed",
                rollback_completed=True,
                original_error=e,
                details={"client_id": client.client_id, "employee_id": employee.employee_id},
            ) from e

    def _notify(self, method: str, employee: Employee, assignment: Assignment) -> None:
        if self.notifier is None:
            return
        try:
            getattr(self.notifier, method)(employee, assignment)
        except Exception as e:
            logger.warning(f"Notification {method} for employee {employee.employee_id} failed: {e}")

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    def assign(
        self,
        client_id: str,
        employee_id: str,
        year: int,
        month: int,
        task,
        actor: str,
        actor_name: Optional[str] = None,
    ) -> AssignmentPair:
        """
        Assign a task for a client month to an employee.

        Checks run in this order:
        period, documents present, client-side duplicate, capacity,
        task value, employee-side duplicate.
        """
        validate_period(year, month, self.settings.min_assignment_year, self.settings.max_assignment_year)

        client = self._load_client(client_id)
        employee = self._load_employee(employee_id)
        task_value = _task_value(task)
        period = f"{year}-{month:02d}"

        if not month_has_documents(client, year, month):
            raise PreconditionError(
                f"No documents uploaded for {period}",
                details={"client_id": client_id, "year": year, "month": month},
            )

        active = client.active_assignments(year, month)
        if any(a.task.value == task_value for a in active):
            raise ConflictError(
                f"Task '{task_value}' already assigned for {period}",
                details={"client_id": client_id, "year": year, "month": month, "task": task_value},
            )

        if len(active) >= self.settings.max_tasks_per_month:
            raise CapacityError(
                f"Client already has {len(active)} active tasks for {period}",
                details={
                    "client_id": client_id,
                    "year": year,
                    "month": month,
                    "limit": self.settings.max_tasks_per_month,
                },
            )

        task_type = parse_task(task_value)

        if any(a.client_id == client_id and a.matches(year, month, task_type) for a in employee.active_assignments()):
            raise ConflictError(
                f"Employee already has '{task_value}' for this client in {period}",
                details={"employee_id": employee_id, "client_id": client_id, "year": year, "month": month},
            )

        client_copy = Assignment(
            year=year,
            month=month,
            task=task_type,
            client_id=client.client_id,
            client_name=client.name,
            employee_id=employee.employee_id,
            employee_name=employee.name,
            assigned_by=actor,
            assigned_by_name=actor_name,
            assigned_at=datetime.utcnow(),
        )
        employee_copy = client_copy.model_copy(deep=True)

        client.employee_assignments.append(client_copy)
        employee.assigned_clients.append(employee_copy)

        def undo(c: Client) -> None:
            c.employee_assignments = [
                a for a in c.employee_assignments if a.assignment_id != client_copy.assignment_id
            ]

        self._paired_write(client, employee, undo, "Assignment")

        logger.info(
            f"Assigned '{task_value}' for client {client_id} {period} to employee {employee_id} by {actor}"
        )
        audit_safely(
            self.audit_logger,
            AuditEventType.ASSIGNMENT_CREATE,
            action="assign",
            resource_type="assignment",
            resource_id=client_copy.assignment_id,
            user_id=actor,
            details={"client_id": client_id, "employee_id": employee_id, "year": year,
                     "month": month, "task": task_value},
        )
        self._notify("notify_assigned", employee, employee_copy)

        return AssignmentPair(client_copy, employee_copy)

    def remove(
        self,
        client_id: str,
        employee_id: str,
        year: int,
        month: int,
        task,
        actor: str,
        reason: Optional[str] = None,
        actor_name: Optional[str] = None,
    ) -> RemovalRecord:
        """
        Soft-remove an assignment on both sides.

        Raises:
            NotFoundError: no active copy on either side
            InconsistencyError: only one side has an active copy, or the
                employee copy is complete while the client copy is not
            ConflictError: the task is already complete, or already removed
        """
        validate_period(year, month)
        task_type = parse_task(task)

        client = self._load_client(client_id)
        employee = self._load_employee(employee_id)
        return self._remove_loaded(client, employee, year, month, task_type, actor, reason, actor_name)

    def _remove_loaded(
        self,
        client: Client,
        employee: Employee,
        year: int,
        month: int,
        task: TaskType,
        actor: str,
        reason: Optional[str],
        actor_name: Optional[str] = None,
    ) -> RemovalRecord:
        client_side, employee_side = self._locate_active_pair(client, employee, year, month, task)

        if client_side.accounting_done:
            raise ConflictError(
                "Cannot remove a completed task",
                details={"assignment_id": client_side.assignment_id, "task": task.value},
            )
        if employee_side.accounting_done:
            raise InconsistencyError(
                "Employee copy is marked complete but client copy is not",
                details={"assignment_id": client_side.assignment_id, "task": task.value},
            )

        before = client_side.model_copy(deep=True)
        now = datetime.utcnow()
        for copy in (client_side, employee_side):
            copy.is_removed = True
            copy.removed_at = now
            copy.removed_by = actor
            copy.removal_reason = reason

        def undo(c: Client) -> None:
            c.employee_assignments = [
                before if a.assignment_id == before.assignment_id else a
                for a in c.employee_assignments
            ]

        self._paired_write(client, employee, undo, "Assignment removal")

        record = RemovalRecord(
            assignment_id=client_side.assignment_id,
            client_id=client.client_id,
            client_name=client.name,
            employee_id=employee.employee_id,
            employee_name=employee.name,
            year=year,
            month=month,
            task=task,
            assigned_at=client_side.assigned_at,
            assigned_by=client_side.assigned_by,
            removed_at=now,
            removed_by=actor,
            removal_reason=reason,
            was_accounting_done=client_side.accounting_done,
            duration_days=max((now - client_side.assigned_at).days, 0),
        )

        logger.info(
            f"Removed '{task.value}' for client {client.client_id} {year}-{month:02d} "
            f"from employee {employee.employee_id} by {actor}"
        )
        record_removal_safely(self.audit_logger, record)
        audit_safely(
            self.audit_logger,
            AuditEventType.ASSIGNMENT_REMOVE,
            action="remove",
            resource_type="assignment",
            resource_id=record.assignment_id,
            user_id=actor,
            details={"client_id": client.client_id, "employee_id": employee.employee_id,
                     "year": year, "month": month, "task": task.value, "reason": reason,
                     "remover_name": actor_name},
        )
        self._notify("notify_removed", employee, employee_side)

        return record

    def complete_task(
        self,
        client_id: str,
        employee_id: str,
        year: int,
        month: int,
        task,
        actor: str,
    ) -> AssignmentPair:
        """
        Mark an assignment's accounting as done on both sides.

        The client month is flagged accounting_done once every active task
        for it is complete.
        """
        validate_period(year, month)
        task_type = parse_task(task)

        client = self._load_client(client_id)
        employee = self._load_employee(employee_id)
        client_side, employee_side = self._locate_active_pair(client, employee, year, month, task_type)

        if client_side.accounting_done:
            raise ConflictError(
                "Task already completed",
                details={"assignment_id": client_side.assignment_id, "task": task_type.value},
            )

        before = client_side.model_copy(deep=True)
        month_record = client.get_month(year, month)
        month_done_before = month_record.accounting_done if month_record is not None else None

        now = datetime.utcnow()
        for copy in (client_side, employee_side):
            copy.accounting_done = True
            copy.accounting_done_at = now
            copy.accounting_done_by = actor

        if month_record is not None:
            month_record.accounting_done = all(a.accounting_done for a in client.active_assignments(year, month))

        def undo(c: Client) -> None:
            c.employee_assignments = [
                before if a.assignment_id == before.assignment_id else a
                for a in c.employee_assignments
            ]
            record = c.get_month(year, month)
            if record is not None and month_done_before is not None:
                record.accounting_done = month_done_before

        self._paired_write(client, employee, undo, "Task completion")

        logger.info(
            f"Completed '{task_type.value}' for client {client_id} {year}-{month:02d} by {actor}"
        )
        audit_safely(
            self.audit_logger,
            AuditEventType.ASSIGNMENT_COMPLETE,
            action="complete",
            resource_type="assignment",
            resource_id=client_side.assignment_id,
            user_id=actor,
            details={"client_id": client_id, "employee_id": employee_id, "year": year,
                     "month": month, "task": task_type.value},
        )
        return AssignmentPair(client_side, employee_side)

    def deactivate_employee(
        self,
        employee_id: str,
        actor: str,
        as_of: Optional[datetime] = None,
        reason: str = "Employee deactivated",
    ) -> Dict[str, Any]:
        """
        Remove the employee's current-period assignments, then deactivate them.

        Only assignments for the as_of year/month are removed. A failure on
        one client is logged and collected; it does not stop the others. The
        employee is marked inactive as the final step whatever happened.
        """
        as_of = as_of or datetime.utcnow()
        employee = self._load_employee(employee_id)

        removed: List[Dict[str, Any]] = []
        failures: List[Dict[str, Any]] = []

        current = [
            (a.client_id, a.task) for a in employee.active_assignments(as_of.year, as_of.month)
        ]
        for client_id, task in current:
            try:
                client = self._load_client(client_id)
                record = self._remove_loaded(
                    client, employee, as_of.year, as_of.month, task, actor, reason,
                )
                removed.append({
                    "client_id": client_id,
                    "task": task.value,
                    "assignment_id": record.assignment_id,
                })
            except Exception as e:
                logger.error(
                    f"Deactivation of {employee_id}: could not remove '{task.value}' "
                    f"for client {client_id}: {e}"
                )
                failures.append({"client_id": client_id, "task": task.value, "error": str(e)})
            # Later removals build on the latest stored employee document
            try:
                reloaded = self.employees.get(employee_id)
            except Exception as e:
                logger.warning(f"Deactivation of {employee_id}: reload failed, keeping current copy: {e}")
                reloaded = None
            if reloaded is not None:
                employee = reloaded

        employee.is_active = False
        employee.deactivated_at = as_of
        employee.deactivated_by = actor
        self.employees.save(employee)

        logger.info(
            f"Employee {employee_id} deactivated by {actor}: "
            f"{len(removed)} task(s) removed, {len(failures)} failure(s)"
        )
        audit_safely(
            self.audit_logger,
            AuditEventType.EMPLOYEE_DEACTIVATE,
            action="deactivate",
            resource_type="employee",
            resource_id=employee_id,
            user_id=actor,
            details={"removed": len(removed), "failures": len(failures)},
        )
        return {
            "employee_id": employee_id,
            "is_active": False,
            "year": as_of.year,
            "month": as_of.month,
            "removed_tasks": removed,
            "failures": failures,
        }

    # =========================================================================
    # QUERIES
    # =========================================================================

    def task_status_for_month(self, client_id: str, year: int, month: int) -> Dict[str, Any]:
        """Status of every task type for a client month."""
        validate_period(year, month)
        client = self._load_client(client_id)
        active = {a.task: a for a in client.active_assignments(year, month)}

        tasks = []
        for task_type in TaskType:
            assignment = active.get(task_type)
            if assignment is None:
                tasks.append({"task": task_type.value, "status": "not_assigned"})
                continue
            tasks.append({
                "task": task_type.value,
                "status": "assigned",
                "assignment_id": assignment.assignment_id,
                "employee_id": assignment.employee_id,
                "employee_name": assignment.employee_name,
                "assigned_at": assignment.assigned_at.isoformat(),
                "accounting_done": assignment.accounting_done,
            })

        return {
            "client_id": client_id,
            "year": year,
            "month": month,
            "tasks": tasks,
            "assigned_count": len(active),
            "completed_count": sum(1 for a in active.values() if a.accounting_done),
        }

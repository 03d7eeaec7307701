"""
Assignment Notifications

Best-effort emails to employees when a task is assigned to or removed from
them. Delivery failures are logged and reported in the return value; they
are never raised to the assignment workflow.
"""

import logging
from typing import Optional

from domain.aggregates import Assignment, Employee

from .email_provider import DeliveryResult, DeliveryStatus, EmailMessage, EmailProvider, get_email_provider

logger = logging.getLogger(__name__)

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def _period_label(assignment: Assignment) -> str:
    return f"{MONTH_NAMES[assignment.month - 1]} {assignment.year}"


class AssignmentNotifier:
    """Formats and sends assignment emails."""

    def __init__(self, provider: Optional[EmailProvider] = None, enabled: bool = True):
        self._provider = provider
        self.enabled = enabled

    @property
    def provider(self) -> EmailProvider:
        return self._provider or get_email_provider()

    def notify_assigned(self, employee: Employee, assignment: Assignment) -> DeliveryResult:
        period = _period_label(assignment)
        client = assignment.client_name or assignment.client_id
        return self._send(
            employee,
            subject=f"New task assigned: {assignment.task.value} for {client} ({period})",
            body_text=(
                f"Hello {employee.name or employee.employee_id},\n\n"
                f"You have been assigned '{assignment.task.value}' for {client}, {period}.\n"
                f"Assigned by: {assignment.assigned_by_name or assignment.assigned_by}\n"
            ),
            tags=["assignment", "assigned"],
        )

    def notify_removed(self, employee: Employee, assignment: Assignment) -> DeliveryResult:
        period = _period_label(assignment)
        client = assignment.client_name or assignment.client_id
        reason = assignment.removal_reason or "No reason given"
        return self._send(
            employee,
            subject=f"Task removed: {assignment.task.value} for {client} ({period})",
            body_text=(
                f"Hello {employee.name or employee.employee_id},\n\n"
                f"'{assignment.task.value}' for {client}, {period} is no longer assigned to you.\n"
                f"Reason: {reason}\n"
            ),
            tags=["assignment", "removed"],
        )

    def _send(self, employee: Employee, subject: str, body_text: str, tags) -> DeliveryResult:
        if not self.enabled or not employee.email:
            return DeliveryResult(success=False, status=DeliveryStatus.SKIPPED)

        message = EmailMessage(to=employee.email, subject=subject, body_text=body_text, tags=list(tags))
        try:
            result = self.provider.send(message)
        except Exception as e:
            logger.warning(f"Assignment email to {employee.email} failed: {e}")
            return DeliveryResult(success=False, status=DeliveryStatus.FAILED, error_message=str(e))

        if not result.success:
            logger.warning(f"Assignment email to {employee.email} not delivered: {result.error_message}")
        return result

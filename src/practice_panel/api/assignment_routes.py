"""
Practice Panel Assignment Routes

Endpoints for assigning monthly tasks to employees, removing and
completing them, and deactivating employees.
"""

from datetime import datetime
from typing import Optional
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from .common import format_success_response, get_assignment_manager

logger = logging.getLogger(__name__)

assignment_router = APIRouter(tags=["Assignments"])


# =============================================================================
# REQUEST MODELS
# =============================================================================

class AssignmentRequest(BaseModel):
    """Identifies one task of one client month for one employee."""
    client_id: str = Field(..., min_length=1)
    employee_id: str = Field(..., min_length=1)
    year: int
    month: int
    task: str = Field(..., description="Bookkeeping, VAT Filing Computation, VAT Filing or Financial Statement Generation")
    actor: str = Field(..., min_length=1)
    actor_name: Optional[str] = None


class RemoveAssignmentRequest(AssignmentRequest):
    reason: Optional[str] = None


class DeactivateEmployeeRequest(BaseModel):
    actor: str = Field(..., min_length=1)
    as_of: Optional[datetime] = None
    reason: str = "Employee deactivated"


# =============================================================================
# ENDPOINTS
# =============================================================================

@assignment_router.post("/assignments", status_code=201)
async def assign_task(request: AssignmentRequest, manager=Depends(get_assignment_manager)):
    """
    Assign a task to an employee.

    The assignment is written to both the client and the employee record.
    """
    pair = manager.assign(
        request.client_id,
        request.employee_id,
        request.year,
        request.month,
        request.task,
        actor=request.actor,
        actor_name=request.actor_name,
    )
    return format_success_response({"assignment": pair.to_dict(), "message": "Task assigned successfully"})


@assignment_router.post("/assignments/remove")
async def remove_assignment(request: RemoveAssignmentRequest, manager=Depends(get_assignment_manager)):
    """Remove an assignment that has not been completed."""
    record = manager.remove(
        request.client_id,
        request.employee_id,
        request.year,
        request.month,
        request.task,
        actor=request.actor,
        reason=request.reason,
        actor_name=request.actor_name,
    )
    return format_success_response({"removal": record.to_dict(), "message": "Assignment removed successfully"})


@assignment_router.post("/assignments/complete")
async def complete_assignment(request: AssignmentRequest, manager=Depends(get_assignment_manager)):
    pair = manager.complete_task(
        request.client_id,
        request.employee_id,
        request.year,
        request.month,
        request.task,
        actor=request.actor,
    )
    return format_success_response({"assignment": pair.to_dict(), "message": "Task marked complete"})


@assignment_router.get("/clients/{client_id}/tasks/{year}/{month}")
async def task_status(client_id: str, year: int, month: int, manager=Depends(get_assignment_manager)):
    """Status of every task type for a client month."""
    return format_success_response(manager.task_status_for_month(client_id, year, month))


@assignment_router.post("/employees/{employee_id}/deactivate")
async def deactivate_employee(
    employee_id: str,
    request: DeactivateEmployeeRequest,
    manager=Depends(get_assignment_manager),
):
    """
    Deactivate an employee.

    Assignments for the current month are removed first; failures are
    reported in the response and do not block deactivation.
    """
    result = manager.deactivate_employee(
        employee_id, request.actor, as_of=request.as_of, reason=request.reason,
    )
    return format_success_response(result)

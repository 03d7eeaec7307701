"""
Practice Panel Dashboard Routes
"""

from typing import Optional
import logging

from fastapi import APIRouter, Depends

from domain.value_objects import ViewerKind

from .common import format_success_response, get_dashboard_service

logger = logging.getLogger(__name__)

dashboard_router = APIRouter(tags=["Dashboard"])


@dashboard_router.get("/clients/{client_id}/summary")
async def client_summary(
    client_id: str,
    viewer_id: Optional[str] = None,
    viewer_kind: Optional[ViewerKind] = None,
    service=Depends(get_dashboard_service),
):
    """Per-month files, locks and task progress for a client."""
    return format_success_response(service.client_summary(client_id, viewer_id, viewer_kind))


@dashboard_router.get("/employees/{employee_id}/summary")
async def employee_summary(employee_id: str, service=Depends(get_dashboard_service)):
    """Active assignments of an employee grouped by client."""
    return format_success_response(service.employee_summary(employee_id))

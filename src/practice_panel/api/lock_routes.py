"""
Practice Panel Lock Routes

Endpoints for locking months and categories.
"""

from typing import Optional
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from .common import format_success_response, get_lock_service, parse_selector

logger = logging.getLogger(__name__)

lock_router = APIRouter(tags=["Locks"])


class MonthLockRequest(BaseModel):
    locked: bool = Field(True, description="False unlocks")
    actor: str = Field(..., min_length=1)


class CategoryLockRequest(BaseModel):
    category: str
    category_name: Optional[str] = None
    locked: bool = True
    actor: str = Field(..., min_length=1)


@lock_router.post("/clients/{client_id}/months/{year}/{month}/lock")
async def lock_month(
    client_id: str,
    year: int,
    month: int,
    request: MonthLockRequest,
    service=Depends(get_lock_service),
):
    """
    Lock or unlock a month.

    The new state is applied to every category and file of the month.
    """
    result = service.lock_month(client_id, year, month, request.locked, request.actor)
    return format_success_response(result)


@lock_router.post("/clients/{client_id}/months/{year}/{month}/categories/lock")
async def lock_category(
    client_id: str,
    year: int,
    month: int,
    request: CategoryLockRequest,
    service=Depends(get_lock_service),
):
    """Lock or unlock one category without touching the month flag."""
    selector = parse_selector(request.category, request.category_name)
    result = service.lock_category(client_id, year, month, selector, request.locked, request.actor)
    return format_success_response(result)


@lock_router.post("/locks/auto-lock/run")
async def run_auto_lock(service=Depends(get_lock_service)):
    """Run the previous-month auto-lock now instead of waiting for the schedule."""
    stats = service.lock_previous_month_for_all_clients()
    return format_success_response({"stats": stats})

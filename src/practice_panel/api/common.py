"""
Common utilities for Practice Panel API routes.

Shared response formatting, error-to-status mapping and service
dependencies.
"""

from typing import Dict, Any, Optional
from datetime import datetime
from enum import Enum
import logging
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse

from domain.value_objects import CategorySelector
from services import (
    get_assignment_manager,
    get_dashboard_service,
    get_document_service,
    get_lock_service,
    get_note_service,
)
from services.logging_config import request_id_var

from ..errors import (
    CapacityError,
    ConflictError,
    InconsistencyError,
    LockedError,
    NotFoundError,
    PartialFailureError,
    PracticePanelError,
    PreconditionError,
    ValidationError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# ERROR CODES - Consistent API Error Classification
# =============================================================================

class ErrorCode(str, Enum):
    """Standard error codes for API responses."""
    SUCCESS = "SUCCESS"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    PRECONDITION_FAILED = "PRECONDITION_FAILED"
    LOCKED = "LOCKED"
    INCONSISTENT_STATE = "INCONSISTENT_STATE"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# HTTP STATUS CODES
# =============================================================================

class HTTPStatus:
    """HTTP status codes used by the practice panel."""
    OK = 200
    CREATED = 201
    BAD_REQUEST = 400
    NOT_FOUND = 404
    CONFLICT = 409
    PRECONDITION_FAILED = 412
    UNPROCESSABLE_ENTITY = 422
    LOCKED = 423
    INTERNAL_SERVER_ERROR = 500


# Most specific class first
ERROR_STATUS = [
    (ValidationError, HTTPStatus.BAD_REQUEST),
    (NotFoundError, HTTPStatus.NOT_FOUND),
    (CapacityError, HTTPStatus.CONFLICT),
    (InconsistencyError, HTTPStatus.CONFLICT),
    (ConflictError, HTTPStatus.CONFLICT),
    (PreconditionError, HTTPStatus.PRECONDITION_FAILED),
    (LockedError, HTTPStatus.LOCKED),
    (PartialFailureError, HTTPStatus.INTERNAL_SERVER_ERROR),
]


def status_for_error(exc: PracticePanelError) -> int:
    for error_cls, status in ERROR_STATUS:
        if isinstance(exc, error_cls):
            return status
    return HTTPStatus.INTERNAL_SERVER_ERROR


# =============================================================================
# RESPONSE FORMATTING
# =============================================================================

def format_error_response(
    message: str,
    code: str = "PRACTICE_ERROR",
    details: Optional[Dict] = None,
    request_id: Optional[str] = None
) -> Dict[str, Any]:
    """Format a standard error response with optional details."""
    response = {
        "success": False,
        "error": True,
        "code": code,
        "message": message,
        "timestamp": datetime.utcnow().isoformat(),
    }
    if details:
        response["details"] = details
    if request_id:
        response["request_id"] = request_id
    return response


def format_success_response(data: Dict[str, Any], request_id: Optional[str] = None) -> Dict[str, Any]:
    """Format a standard success response."""
    response = {
        "success": True,
        "timestamp": datetime.utcnow().isoformat(),
        **data,
    }
    request_id = request_id or request_id_var.get()
    if request_id:
        response["request_id"] = request_id
    return response


def generate_request_id() -> str:
    """Generate a unique request ID for tracing."""
    return f"req_{uuid.uuid4().hex[:12]}"


async def practice_error_handler(request: Request, exc: PracticePanelError) -> JSONResponse:
    """Translate engine errors into JSON error responses."""
    status = status_for_error(exc)
    details = dict(exc.details)
    if isinstance(exc, PartialFailureError):
        details["rollback_completed"] = exc.rollback_completed
        logger.error(f"Partial failure on {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{exc.code} on {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=status,
        content=format_error_response(
            exc.message,
            code=exc.code,
            details=details,
            request_id=request_id_var.get(),
        ),
    )


# =============================================================================
# REQUEST HELPERS
# =============================================================================

def parse_selector(category: str, name: Optional[str] = None) -> CategorySelector:
    """Build a category selector, reporting bad values as ValidationError."""
    try:
        return CategorySelector.parse(category, name)
    except ValueError as e:
        raise ValidationError(
            f"Invalid category: {category}",
            details={"category": category, "name": name, "reason": str(e)},
        ) from e


__all__ = [
    "ErrorCode",
    "HTTPStatus",
    "ERROR_STATUS",
    "status_for_error",
    "format_error_response",
    "format_success_response",
    "generate_request_id",
    "practice_error_handler",
    "parse_selector",
    "get_document_service",
    "get_lock_service",
    "get_note_service",
    "get_dashboard_service",
    "get_assignment_manager",
]

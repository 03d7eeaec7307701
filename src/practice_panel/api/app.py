"""
Practice Panel application factory.

Builds the FastAPI app, wires request correlation and maps engine errors
to JSON responses.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from config.settings import get_settings
from services.logging_config import actor_id_var, configure_from_settings, request_id_var

from ..errors import PracticePanelError
from .common import ErrorCode, HTTPStatus, format_error_response, generate_request_id, practice_error_handler
from .router import practice_router

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Bind request and actor identity to the logging context.

    - X-Request-ID is reused when the caller sends one
    - X-Actor-ID is recorded for log correlation only
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        request.state.request_id = request_id

        request_token = request_id_var.set(request_id)
        actor_token = actor_id_var.set(request.headers.get("X-Actor-ID"))
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(request_token)
            actor_id_var.reset(actor_token)

        response.headers["X-Request-ID"] = request_id
        return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors with readable messages."""
    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        errors.append(f"{field}: {error['msg']}")

    return JSONResponse(
        status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
        content=format_error_response(
            "Invalid request data",
            code=ErrorCode.VALIDATION_ERROR.value,
            details={"validation_errors": errors},
            request_id=getattr(request.state, "request_id", None),
        ),
    )


def create_app(configure_logs: bool = False) -> FastAPI:
    """
    Create the practice panel application.

    Args:
        configure_logs: Apply logging settings from the environment
    """
    settings = get_settings()
    if configure_logs:
        configure_from_settings(settings)

    app = FastAPI(title=settings.name, version=settings.version, debug=settings.debug)
    app.add_middleware(RequestContextMiddleware)
    app.add_exception_handler(PracticePanelError, practice_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(practice_router, prefix="/api")

    logger.info(f"{settings.name} {settings.version} started ({settings.environment})")
    return app

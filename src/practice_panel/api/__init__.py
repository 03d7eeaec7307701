"""
Practice Panel API

HTTP surface over the document, lock, note and assignment services.
"""

from .router import practice_router
from .app import create_app
from .common import (
    ErrorCode,
    format_error_response,
    format_success_response,
    status_for_error,
)

__all__ = [
    "practice_router",
    "create_app",
    "ErrorCode",
    "format_error_response",
    "format_success_response",
    "status_for_error",
]

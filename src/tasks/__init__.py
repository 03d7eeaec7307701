"""
Background Tasks Module - Celery-based scheduled processing.

Provides:
- Celery app configuration with Redis broker
- Monthly auto-lock of the previous month
"""

from .celery_app import celery_app
from .period_tasks import auto_lock_previous_month

__all__ = [
    # Celery app
    "celery_app",
    # Period tasks
    "auto_lock_previous_month",
]

"""
Celery App Configuration - Background task processing with Redis broker.

Configures Celery for:
- The monthly auto-lock of the previous month

Usage:
    # Run worker
    celery -A tasks.celery_app worker --loglevel=info

    # Run with beat scheduler
    celery -A tasks.celery_app worker --beat --loglevel=info
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from celery import Celery
from celery.schedules import crontab
from celery.signals import task_failure, task_postrun

from config.settings import get_settings, CelerySettings, RedisSettings, Settings

logger = logging.getLogger(__name__)


def build_beat_schedule(settings: Settings) -> Dict[str, Dict[str, Any]]:
    """Periodic jobs, keyed by schedule entry name."""
    return {
        "auto-lock-previous-month": {
            "task": "tasks.period_tasks.auto_lock_previous_month",
            "schedule": crontab(
                minute=0,
                hour=settings.auto_lock_hour,
                day_of_month=settings.auto_lock_day,
            ),
        },
    }


def create_celery_app(
    redis_settings: Optional[RedisSettings] = None,
    celery_settings: Optional[CelerySettings] = None,
) -> Celery:
    """
    Create the Celery application that runs the period jobs.

    Broker and result backend share one Redis server on separate databases.
    The beat schedule is read from application settings.
    """
    settings = get_settings()
    redis_settings = redis_settings or settings.redis
    celery_settings = celery_settings or settings.celery

    def redis_db(db: int) -> str:
        return redis_settings.model_copy(update={"db": db}).url

    app = Celery(
        "practice_engine",
        broker=redis_db(celery_settings.broker_db),
        backend=redis_db(celery_settings.result_db),
        include=["tasks.period_tasks"],
    )
    app.conf.update(
        task_serializer=celery_settings.task_serializer,
        result_serializer=celery_settings.result_serializer,
        accept_content=celery_settings.accept_content,
        result_accept_content=celery_settings.accept_content,
        task_acks_late=celery_settings.task_acks_late,
        task_reject_on_worker_lost=celery_settings.task_reject_on_worker_lost,
        worker_prefetch_multiplier=celery_settings.worker_prefetch_multiplier,
        task_time_limit=celery_settings.task_time_limit,
        task_soft_time_limit=celery_settings.task_soft_time_limit,
        # Run statistics are kept for a day
        result_expires=86400,
        # Period boundaries are UTC calendar days
        timezone="UTC",
        enable_utc=True,
        beat_schedule=build_beat_schedule(settings),
    )
    return app


# Global Celery app instance
celery_app = create_celery_app()


@task_postrun.connect
def on_task_postrun(task_id, task, args, kwargs, retval, state, **other):
    """Log the outcome of a finished run, with its failure count when it has one."""
    failed = retval.get("failed") if isinstance(retval, dict) else None
    logger.info(
        f"Task completed: {task.name}[{task_id}] state={state}"
        + (f" failed={failed}" if failed is not None else ""),
        extra={"task_id": task_id, "task_name": task.name, "state": state},
    )


@task_failure.connect
def on_task_failure(task_id, exception, args, kwargs, traceback, einfo, **other):
    """Log a run that raised before producing statistics."""
    task = other.get("sender")
    logger.error(
        f"Task failure: {task.name if task else 'unknown'}[{task_id}] - {exception}",
        extra={"task_id": task_id, "exception": str(exception)},
    )

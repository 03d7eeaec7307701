"""
Period Celery Tasks.

Scheduled jobs over client months:
- Lock the previous month for every active client (beat: auto_lock_day)
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(name="tasks.period_tasks.auto_lock_previous_month")
def auto_lock_previous_month(run_at: Optional[str] = None) -> Dict[str, Any]:
    """
    Lock last month for all clients.

    Args:
        run_at: Optional ISO timestamp to run as; defaults to now (UTC)

    Returns:
        Run statistics from the lock service
    """
    from services import get_lock_service
    from services.lock_service import as_naive_utc

    now = as_naive_utc(datetime.fromisoformat(run_at)) if run_at else datetime.utcnow()
    logger.info(f"Auto-lock run starting for {now.strftime('%Y-%m-%d')}")

    stats = get_lock_service().lock_previous_month_for_all_clients(now=now)

    if stats["failed"]:
        logger.warning(
            f"Auto-lock of {stats['year']}-{stats['month']:02d} finished with "
            f"{stats['failed']} failure(s)"
        )
    return stats

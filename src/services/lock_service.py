"""
Lock Service

Month and category lock operations on stored clients, plus the monthly
automatic lock of the previous month.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from audit.audit_logger import AuditEventType, AuditSeverity
from domain.aggregates import Client, MonthRecord
from domain.value_objects import CategorySelector, Note
from notifications.email_provider import send_email
from practice_panel.workflow.lock_cascade import set_category_lock, set_month_lock

from .client_document_service import ClientDocumentService
from .logging_config import log_performance

logger = logging.getLogger(__name__)

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def as_naive_utc(value: datetime) -> datetime:
    """Aware timestamps are converted to UTC and stored naive, like utcnow()."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def previous_period(now: datetime) -> Tuple[int, int]:
    """(year, month) of the month before `now`."""
    if now.month == 1:
        return now.year - 1, 12
    return now.year, now.month - 1


class LockService(ClientDocumentService):
    """Applies lock cascades to stored client documents."""

    def lock_month(
        self,
        client_id: str,
        year: int,
        month: int,
        locked: bool,
        actor: str,
    ) -> Dict[str, Any]:
        """
        Lock or unlock a month and everything beneath it.

        The month is created if it does not exist yet. The cascade is applied
        in memory and persisted with a single client write.
        """
        client, result = self._mutate_month(
            client_id, year, month,
            lambda c, record: set_month_lock(record, locked, actor),
        )

        self._audit(
            AuditEventType.MONTH_LOCK if locked else AuditEventType.MONTH_UNLOCK,
            action="lock_month" if locked else "unlock_month",
            resource_type="month",
            resource_id=self._resource_id(client_id, year, month),
            user_id=actor,
            details={"changed": result.changed, "files_affected": result.files_affected},
        )
        record = client.get_month(year, month)
        return {
            "client_id": client_id,
            "year": year,
            "month": month,
            "was_locked_once": record.was_locked_once,
            **result.to_dict(),
        }

    def lock_category(
        self,
        client_id: str,
        year: int,
        month: int,
        selector: CategorySelector,
        locked: bool,
        actor: str,
    ) -> Dict[str, Any]:
        """Lock or unlock a single category; the month flag is left alone."""
        client, category = self._mutate_month(
            client_id, year, month,
            lambda c, record: set_category_lock(record, selector, locked, actor),
        )

        logger.info(
            f"Category {selector.label} {'locked' if locked else 'unlocked'} for client "
            f"{client_id} {year}-{month:02d} by {actor}"
        )
        self._audit(
            AuditEventType.CATEGORY_LOCK if locked else AuditEventType.CATEGORY_UNLOCK,
            action="lock_category" if locked else "unlock_category",
            resource_type="category",
            resource_id=self._resource_id(client_id, year, month),
            user_id=actor,
            details={"category": selector.label},
        )
        return {
            "client_id": client_id,
            "year": year,
            "month": month,
            "category": selector.label,
            "is_locked": category.is_locked,
            "was_locked_once": category.was_locked_once,
            "month_locked": client.get_month(year, month).is_locked,
        }

    # =========================================================================
    # AUTOMATIC LOCK
    # =========================================================================

    def _auto_lock(self, client: Client, record: MonthRecord, now: datetime) -> bool:
        if record.is_locked:
            return False
        actor = self.settings.auto_lock_actor
        set_month_lock(record, True, actor, at=now)
        record.auto_lock_date = now
        record.month_notes.append(Note(
            text=f"Month automatically locked by system on {self.settings.auto_lock_day}th "
                 f"({now.strftime('%Y-%m-%d')})",
            added_by=actor,
            added_by_name="System",
            added_at=now,
        ))
        return True

    @log_performance("auto_lock_previous_month")
    def lock_previous_month_for_all_clients(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Lock the previous month for every active client.

        Clients whose month is already locked are counted and skipped without
        a write. A failure on one client is collected and the run continues.
        """
        now = as_naive_utc(now) if now else datetime.utcnow()
        year, month = previous_period(now)

        locked: List[str] = []
        already_locked: List[str] = []
        failed: List[Dict[str, str]] = []
        client_ids = self.clients.list_ids()
        skipped_inactive = 0

        for client_id in client_ids:
            try:
                client = self._load_client(client_id)
                if not client.is_active:
                    skipped_inactive += 1
                    continue
                existing = client.get_month(year, month)
                if existing is not None and existing.is_locked:
                    already_locked.append(client_id)
                    continue

                _, changed = self._mutate_month(
                    client_id, year, month,
                    lambda c, record: self._auto_lock(c, record, now),
                )
                (locked if changed else already_locked).append(client_id)
            except Exception as e:
                logger.error(f"Auto-lock of {year}-{month:02d} failed for client {client_id}: {e}")
                failed.append({"client_id": client_id, "error": str(e)})

        stats = {
            "year": year,
            "month": month,
            "total_clients": len(client_ids),
            "locked": len(locked),
            "already_locked": len(already_locked),
            "inactive": skipped_inactive,
            "failed": len(failed),
            "locked_clients": locked,
            "already_locked_clients": already_locked,
            "errors": failed,
        }
        logger.info(
            f"Auto-lock {year}-{month:02d}: {stats['locked']} locked, "
            f"{stats['already_locked']} already locked, {stats['failed']} failed"
        )
        self._audit(
            AuditEventType.MONTH_AUTO_LOCK,
            action="auto_lock",
            resource_type="month",
            resource_id=f"{year}-{month:02d}",
            user_id=self.settings.auto_lock_actor,
            details={k: stats[k] for k in ("total_clients", "locked", "already_locked", "failed")},
            severity=AuditSeverity.WARNING if failed else AuditSeverity.INFO,
        )
        self._send_report(stats)
        return stats

    def _send_report(self, stats: Dict[str, Any]) -> None:
        recipient = self.settings.admin_report_email
        if not recipient:
            return
        period = f"{MONTH_NAMES[stats['month'] - 1]} {stats['year']}"
        lines = [
            f"Auto-lock report for {period}",
            "",
            f"Total clients:  {stats['total_clients']}",
            f"Newly locked:   {stats['locked']}",
            f"Already locked: {stats['already_locked']}",
            f"Failed:         {stats['failed']}",
        ]
        for error in stats["errors"][:10]:
            lines.append(f"  {error['client_id']}: {error['error']}")
        try:
            send_email(
                to=recipient,
                subject=f"Auto-lock report: {period} - {stats['locked']} clients locked",
                body_text="\n".join(lines),
                tags=["auto-lock"],
            )
        except Exception as e:
            logger.warning(f"Auto-lock report email failed: {e}")

"""
Client Document Service Base

Load/mutate/save plumbing shared by the document, lock, note and dashboard
services. Each operation reads one client document, changes it in memory
and writes it back once.

Month creation is the one place a write is retried: when the target month
did not exist at load time, the save is optimistic (version-checked). On a
version conflict the client is re-read and the mutation re-applied, so two
first writers for the same month never overwrite each other's month node.
"""

import logging
from typing import Any, Callable, Optional, Tuple

from audit.audit_logger import AuditEventType, AuditLogger, audit_safely
from config.settings import Settings, get_settings
from domain.aggregates import Client, MonthRecord
from domain.repositories import IClientRepository
from practice_panel.documents.tree_store import get_or_create_month, validate_period
from practice_panel.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


class ClientDocumentService:
    """Base class for services operating on a single client document."""

    def __init__(
        self,
        client_repository: IClientRepository,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
    ):
        self.clients = client_repository
        self.audit_logger = audit_logger
        self.settings = settings or get_settings()

    def _load_client(self, client_id: str) -> Client:
        client = self.clients.get(client_id)
        if client is None:
            raise NotFoundError(f"Client not found: {client_id}", details={"client_id": client_id})
        return client

    def _existing_month(self, client: Client, year: int, month: int) -> MonthRecord:
        validate_period(year, month)
        record = client.get_month(year, month)
        if record is None:
            raise NotFoundError(
                f"No documents for {year}-{month:02d}",
                details={"client_id": client.client_id, "year": year, "month": month},
            )
        return record

    def _mutate_month(
        self,
        client_id: str,
        year: int,
        month: int,
        mutate: Callable[[Client, MonthRecord], Any],
    ) -> Tuple[Client, Any]:
        """
        Apply `mutate` to the (possibly new) month and persist the client.

        Returns:
            (saved client, value returned by mutate)

        Raises:
            ConflictError: month creation kept colliding with other writers
        """
        validate_period(year, month)
        retries = self.settings.month_create_max_retries

        for attempt in range(1, retries + 1):
            client = self._load_client(client_id)
            creating = client.get_month(year, month) is None
            record = get_or_create_month(client, year, month)
            result = mutate(client, record)

            if not creating:
                self.clients.save(client)
                return client, result

            if self.clients.save_with_version(client, client.version):
                logger.info(f"Created month {year}-{month:02d} for client {client_id}")
                return client, result

            logger.info(
                f"Client {client_id} changed while creating {year}-{month:02d}, "
                f"re-reading (attempt {attempt}/{retries})"
            )

        raise ConflictError(
            f"Could not create {year}-{month:02d} for client {client_id} after {retries} attempts",
            details={"client_id": client_id, "year": year, "month": month, "retryable": True},
        )

    def _audit(self, event_type: AuditEventType, **kwargs) -> None:
        audit_safely(self.audit_logger, event_type, **kwargs)

    @staticmethod
    def _resource_id(client_id: str, year: int, month: int) -> str:
        return f"{client_id}:{year}-{month:02d}"

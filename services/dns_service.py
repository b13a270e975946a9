"""
services/dns_service.py

Responsibility: Applies a single DNS update request (provider write followed
by a store write) and answers record checks.
Does NOT: make HTTP calls directly, schedule or serialise work (that is
dns_queue.ReconciliationQueue's job), or read configuration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from db.database import SessionFactory
from db.models import DnsRecord
from providers.dns_provider import DNSProvider, RecordType
from repositories.dns_record_repository import DnsRecordRepository
from services.notification_service import TelegramNotifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DnsUpdateRequest:
    """A desired (domain, type) → value mapping for one node."""

    node_id: int
    domain: str
    type: str
    value: str

    def __post_init__(self) -> None:
        # Raises ValueError for anything outside A/AAAA/CNAME
        object.__setattr__(self, "type", RecordType(self.type.upper()).value)


@dataclass(frozen=True)
class DnsCheckResult:
    domain: str
    current_value: str | None
    matches: bool


class DnsService:
    """
    Reconciles one node's DNS record against the provider and the store.

    apply_update() is the task body run by the ReconciliationQueue. The
    provider write and the store write are two separate, non-atomic steps:
    if the provider accepts the value but the store write fails, the store
    lags behind the provider until the next successful update for the node.

    Collaborators:
        - DNSProvider: abstract interface satisfied by CloudflareClient
        - SessionFactory: opens a fresh DB session per call (runs outside
          any request)
        - TelegramNotifier: optional; alerted when the provider rejects a write
    """

    def __init__(
        self,
        dns_provider: DNSProvider,
        session_factory: SessionFactory,
        notifier: TelegramNotifier | None = None,
    ) -> None:
        """
        Initialises the service with all required collaborators.

        Args:
            dns_provider: Any DNSProvider implementation.
            session_factory: Callable returning a new SQLModel Session.
            notifier: Optional notifier for failed-update alerts.
        """
        self._provider = dns_provider
        self._session_factory = session_factory
        self._notifier = notifier

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    async def apply_update(self, request: DnsUpdateRequest) -> bool:
        """
        Writes the requested value to the provider, then records it in the store.

        Args:
            request: The node's desired DNS record.

        Returns:
            True if both the provider and the store accepted the write,
            False otherwise. Failures are logged, never raised.
        """
        logger.info("Processing DNS update: %s (%s) -> %s", request.domain, request.type, request.value)

        ok = await self._provider.update_record(request.domain, request.type, request.value)
        if not ok:
            logger.warning("DNS provider rejected update for %s.", request.domain)
            if self._notifier is not None:
                await self._notifier.notify_dns_update_failed(
                    request.domain, f"{self._provider.name} update_record returned failure"
                )
            return False

        try:
            with self._session_factory() as session:
                DnsRecordRepository(session).upsert_for_node(
                    request.node_id, request.domain, request.type, request.value
                )
        except SQLAlchemyError as exc:
            # NOTE: Provider already holds the new value; the store catches up
            # on the next successful update for this node. No rollback.
            logger.error(
                "DNS record for %s written to provider but not to store: %s",
                request.domain, exc,
            )
            return False

        logger.info("DNS record updated: %s -> %s", request.domain, request.value)
        return True

    async def check_record(
        self,
        domain: str,
        expected_value: str | None = None,
        record_type: str = RecordType.A.value,
    ) -> DnsCheckResult:
        """
        Reads the live record value from the provider.

        Args:
            domain: Fully-qualified DNS name to check.
            expected_value: Optional value the record should hold.
            record_type: Record type to look up (default "A").

        Returns:
            A DnsCheckResult; matches is True when no expectation is given.
        """
        current = await self._provider.get_record(domain, record_type)
        matches = current == expected_value if expected_value is not None else True
        return DnsCheckResult(domain=domain, current_value=current, matches=matches)

    def get_node_records(self, node_id: int) -> list[DnsRecord]:
        with self._session_factory() as session:
            return DnsRecordRepository(session).list_by_node(node_id)

"""
repositories/dns_record_repository.py

Responsibility: Provides low-level read/write access to the DnsRecord table
in SQLite via SQLModel.
Does NOT: call DNS providers or decide when a record must change.
"""

from __future__ import annotations

import logging

from sqlmodel import Session, select

from db.models import DnsRecord, utcnow

logger = logging.getLogger(__name__)


class DnsRecordRepository:
    """
    Manages persistence of the last reconciled DNS record per node.

    Collaborators:
        - Session: SQLModel DB session injected at construction time
    """

    def __init__(self, session: Session) -> None:
        """
        Initialises the repository with an active DB session.

        Args:
            session: An open SQLModel Session.
        """
        self._session = session

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    def get_by_node(self, node_id: int) -> DnsRecord | None:
        """
        Returns the first DnsRecord row for the given node, or None.

        Args:
            node_id: The node's primary key.

        Returns:
            The DnsRecord instance, or None if the node has no record yet.
        """
        statement = select(DnsRecord).where(DnsRecord.node_id == node_id).order_by(DnsRecord.id)
        return self._session.exec(statement).first()

    def list_by_node(self, node_id: int) -> list[DnsRecord]:
        statement = select(DnsRecord).where(DnsRecord.node_id == node_id).order_by(DnsRecord.id)
        return list(self._session.exec(statement).all())

    def upsert_for_node(self, node_id: int, domain: str, record_type: str, value: str) -> DnsRecord:
        """
        Writes the reconciled (domain, type, value) for a node.

        Updates the node's existing row in place, or inserts a new active row
        when the node has none. Both timestamps are stamped with now.

        Args:
            node_id: The node's primary key.
            domain: Fully-qualified DNS name.
            record_type: "A", "AAAA" or "CNAME".
            value: The value just written to the provider.

        Returns:
            The persisted DnsRecord instance.
        """
        now = utcnow()
        record = self.get_by_node(node_id)

        if record is None:
            logger.debug("Creating DnsRecord row for node %s.", node_id)
            record = DnsRecord(
                node_id=node_id,
                domain=domain,
                type=record_type,
                value=value,
                is_active=True,
                created_at=now,
            )

        record.domain = domain
        record.type = record_type
        record.value = value
        record.last_checked_at = now
        record.last_updated_at = now
        record.updated_at = now
        return self.save(record)

    def save(self, record: DnsRecord) -> DnsRecord:
        self._session.add(record)
        self._session.commit()
        self._session.refresh(record)
        return record

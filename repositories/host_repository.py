"""
repositories/host_repository.py

Responsibility: Provides low-level read/write access to the Host table.
Does NOT: evaluate heartbeat staleness or send notifications.
"""

from __future__ import annotations

import logging

from sqlmodel import Session, select

from db.models import Host, utcnow

logger = logging.getLogger(__name__)


class HostRepository:
    """
    Manages persistence of Host rows.

    Collaborators:
        - Session: SQLModel DB session injected at construction time
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_id(self, host_id: int) -> Host | None:
        return self._session.get(Host, host_id)

    def get_by_name(self, name: str) -> Host | None:
        """
        Returns the Host with the given unique name, or None.

        Args:
            name: The host's unique name (usually its hostname).

        Returns:
            The Host instance, or None if unknown.
        """
        statement = select(Host).where(Host.name == name)
        return self._session.exec(statement).first()

    def list_all(self) -> list[Host]:
        statement = select(Host).order_by(Host.name)
        return list(self._session.exec(statement).all())

    def save(self, host: Host) -> Host:
        """
        Persists a Host, stamping updated_at.

        Args:
            host: The Host instance to save. May be new or existing.

        Returns:
            The refreshed Host after commit.
        """
        host.updated_at = utcnow()
        self._session.add(host)
        self._session.commit()
        self._session.refresh(host)
        return host

    def update_status(self, host: Host, status: str) -> Host:
        """
        Sets a host's status field and saves it.

        Args:
            host: The Host to modify.
            status: "online", "offline" or "unknown".

        Returns:
            The saved Host.
        """
        host.status = status
        saved = self.save(host)
        logger.debug("Host %s status -> %s.", host.name, status)
        return saved

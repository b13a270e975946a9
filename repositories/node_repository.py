"""
repositories/node_repository.py

Responsibility: Provides read access and aggregate statistics for the Node
table.
Does NOT: talk to panels or render configuration.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlmodel import Session, select

from db.models import Node


@dataclass
class NodeStats:
    total_nodes: int = 0
    active_nodes: int = 0
    inactive_nodes: int = 0
    total_users: int = 0
    total_traffic_used: int = 0


class NodeRepository:
    """
    Manages persistence of Node rows produced by panel adapters.

    Collaborators:
        - Session: SQLModel DB session injected at construction time
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_id(self, node_id: int) -> Node | None:
        return self._session.get(Node, node_id)

    def list_all(self) -> list[Node]:
        return list(self._session.exec(select(Node).order_by(Node.id)).all())

    def save(self, node: Node) -> Node:
        self._session.add(node)
        self._session.commit()
        self._session.refresh(node)
        return node

    def get_stats(self) -> NodeStats:
        """
        Aggregates node counts, user counts and traffic across all nodes.

        Returns:
            A NodeStats instance.
        """
        stats = NodeStats()
        for node in self.list_all():
            stats.total_nodes += 1
            if node.is_active:
                stats.active_nodes += 1
            else:
                stats.inactive_nodes += 1
            stats.total_users += node.user_count or 0
            stats.total_traffic_used += node.traffic_used or 0
        return stats

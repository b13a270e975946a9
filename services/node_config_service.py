"""
services/node_config_service.py

Responsibility: Builds a NodeConfigContext from stored Node/Host rows and
hands it to the TemplateRenderer.
Does NOT: read template files itself or mutate any stored state.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from db.models import Node
from exceptions import NodeNotFoundError
from repositories.host_repository import HostRepository
from repositories.node_repository import NodeRepository
from services.template_service import (
    HostContext,
    NodeConfigContext,
    TemplateRenderer,
    content_type_for,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedConfig:
    body: str
    content_type: str


def parse_additional_ports(raw: str | None) -> list[int]:
    """
    Parses a comma-separated port list, skipping blanks and non-integers.

    Args:
        raw: Stored text such as "8443, 2053".

    Returns:
        The ports as integers, in stored order.
    """
    ports: list[int] = []
    for part in (raw or "").split(","):
        part = part.strip()
        if not part:
            continue
        try:
            ports.append(int(part))
        except ValueError:
            logger.warning("Ignoring malformed additional port %r.", part)
    return ports


def parse_proxy_config(raw: str | None, node_id: int | None = None) -> dict[str, Any]:
    """Decodes stored proxy_config JSON; malformed or non-object data yields {}."""
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as exc:
        logger.warning("Failed to parse proxy config for node %s: %s", node_id, exc)
        return {}
    return value if isinstance(value, dict) else {}


class NodeConfigService:
    """
    Resolves per-node render context and produces content-typed artifacts.

    Collaborators:
        - NodeRepository / HostRepository: read the node and its linked host
        - TemplateRenderer: loads and substitutes the template body
    """

    def __init__(
        self,
        node_repo: NodeRepository,
        host_repo: HostRepository,
        renderer: TemplateRenderer,
    ) -> None:
        self._nodes = node_repo
        self._hosts = host_repo
        self._renderer = renderer

    def build_context(self, node_id: int) -> NodeConfigContext:
        """
        Builds the render context for a node.

        A missing linked host yields host=None so host placeholders render
        empty rather than failing the render.

        Args:
            node_id: The node's primary key.

        Returns:
            A NodeConfigContext.

        Raises:
            NodeNotFoundError: If no node has this ID.
        """
        node = self._nodes.get_by_id(node_id)
        if node is None:
            raise NodeNotFoundError(f"Node with ID {node_id} not found")
        return self._context_for(node)

    def render_node_config(
        self,
        node_id: int,
        config_type: str,
        template_name: str | None = None,
    ) -> RenderedConfig:
        """
        Renders a node's configuration artifact.

        Args:
            node_id: The node's primary key.
            config_type: "xray" or "nginx".
            template_name: Optional template stem (default "default").

        Returns:
            The rendered body with its content type.

        Raises:
            NodeNotFoundError: If the node does not exist.
            TemplateNotFoundError: If the template does not exist.
            UnsupportedConfigTypeError: If config_type is unknown.
        """
        content_type = content_type_for(config_type)
        body = self._renderer.render(config_type, template_name, self.build_context(node_id))
        logger.info("Generated %s config for node %s.", config_type, node_id)
        return RenderedConfig(body=body, content_type=content_type)

    def _context_for(self, node: Node) -> NodeConfigContext:
        host_ctx = None
        if node.host_id is not None:
            host = self._hosts.get_by_id(node.host_id)
            if host is not None:
                host_ctx = HostContext(ip=host.ip or "", ipv6=host.ipv6, region=host.region)
            else:
                logger.warning("Node %s links missing host %s.", node.id, node.host_id)

        return NodeConfigContext(
            id=node.id,
            name=node.name,
            domain=node.domain or "",
            port=node.port,
            additional_ports=parse_additional_ports(node.additional_ports),
            proxy_type=node.proxy_type,
            proxy_config=parse_proxy_config(node.proxy_config, node.id),
            host=host_ctx,
        )

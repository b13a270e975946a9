"""
dependencies.py

Responsibility: Declares all FastAPI Depends() provider functions for
services, repositories and the long-lived workers stored on app.state.
Does NOT: contain business logic, HTTP handlers, or DB schema definitions.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session

from db.database import get_session
from dns_queue import ReconciliationQueue
from repositories.host_repository import HostRepository
from repositories.node_repository import NodeRepository
from services.dns_service import DnsService
from services.host_service import HostService
from services.node_config_service import NodeConfigService
from services.template_service import TemplateRenderer

# ---------------------------------------------------------------------------
# Workers: created once in the lifespan and stored on app.state
# ---------------------------------------------------------------------------


def _dns_unavailable(request: Request) -> HTTPException:
    reason = getattr(request.app.state, "dns_config_error", None) or "DNS provider not initialised"
    return HTTPException(status_code=503, detail=reason)


def get_dns_queue(request: Request) -> ReconciliationQueue:
    """
    Returns the application's ReconciliationQueue.

    Raises:
        HTTPException: 503 when the DNS provider could not be configured.
    """
    queue = getattr(request.app.state, "dns_queue", None)
    if queue is None:
        raise _dns_unavailable(request)
    return queue


def get_dns_service(request: Request) -> DnsService:
    """
    Returns the application's DnsService.

    Raises:
        HTTPException: 503 when the DNS provider could not be configured.
    """
    service = getattr(request.app.state, "dns_service", None)
    if service is None:
        raise _dns_unavailable(request)
    return service


def get_renderer(request: Request) -> TemplateRenderer:
    return request.app.state.renderer


# ---------------------------------------------------------------------------
# Repository providers
# ---------------------------------------------------------------------------


def get_host_repo(session: Session = Depends(get_session)) -> HostRepository:
    return HostRepository(session)


def get_node_repo(session: Session = Depends(get_session)) -> NodeRepository:
    return NodeRepository(session)


# ---------------------------------------------------------------------------
# Service providers
# ---------------------------------------------------------------------------


def get_host_service(host_repo: HostRepository = Depends(get_host_repo)) -> HostService:
    """
    Provides a HostService backed by the current request's DB session.

    Args:
        host_repo: The repository injected by get_host_repo.

    Returns:
        A HostService instance.
    """
    return HostService(host_repo)


def get_node_config_service(
    node_repo: NodeRepository = Depends(get_node_repo),
    host_repo: HostRepository = Depends(get_host_repo),
    renderer: TemplateRenderer = Depends(get_renderer),
) -> NodeConfigService:
    """
    Provides a NodeConfigService wired to the shared TemplateRenderer.

    The renderer is shared so its template cache survives across requests.

    Returns:
        A NodeConfigService instance.
    """
    return NodeConfigService(node_repo, host_repo, renderer)

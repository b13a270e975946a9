"""
routes/host_routes.py

Responsibility: JSON endpoints for host heartbeats and host/node summaries.
Does NOT: mark hosts offline (the availability monitor does) or send alerts.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends

from dependencies import get_host_service, get_node_repo
from repositories.node_repository import NodeRepository
from routes.responses import success
from services.host_service import HostHeartbeat, HostService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.post("/hosts/heartbeat")
async def heartbeat(
    body: HostHeartbeat,
    host_service: HostService = Depends(get_host_service),
) -> dict[str, Any]:
    """
    Records a heartbeat from a host agent.

    Args:
        body: The agent's status report.
        host_service: Applies the heartbeat to the store.

    Returns:
        The envelope with the saved host.
    """
    host = host_service.process_heartbeat(body)
    return success(host.model_dump(mode="json"))


@router.get("/hosts")
async def list_hosts(host_service: HostService = Depends(get_host_service)) -> dict[str, Any]:
    return success([h.model_dump(mode="json") for h in host_service.list_hosts()])


@router.get("/hosts/stats")
async def host_stats(host_service: HostService = Depends(get_host_service)) -> dict[str, Any]:
    return success(asdict(host_service.get_stats()))


@router.get("/nodes/stats")
async def node_stats(node_repo: NodeRepository = Depends(get_node_repo)) -> dict[str, Any]:
    return success(asdict(node_repo.get_stats()))

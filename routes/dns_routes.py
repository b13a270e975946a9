"""
routes/dns_routes.py

Responsibility: JSON endpoints that push DNS updates into the reconciliation
queue, check live records, and control the queue.
Does NOT: call the DNS provider for writes: every mutation goes through
ReconciliationQueue.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from dependencies import get_dns_queue, get_dns_service
from dns_queue import ReconciliationQueue
from providers.dns_provider import RecordType
from routes.responses import success
from services.dns_service import DnsService, DnsUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dns")


class DnsUpdateBody(BaseModel):
    node_id: int
    domain: str
    type: RecordType = RecordType.A
    value: str

    def to_request(self) -> DnsUpdateRequest:
        return DnsUpdateRequest(
            node_id=self.node_id,
            domain=self.domain,
            type=self.type.value,
            value=self.value,
        )


@router.post("/update")
async def update_record(
    body: DnsUpdateBody,
    queue: ReconciliationQueue = Depends(get_dns_queue),
) -> dict[str, Any]:
    """
    Queues a DNS update and waits for its outcome.

    Args:
        body: The node's desired record.
        queue: The shared ReconciliationQueue.

    Returns:
        The envelope with {"updated": bool}.
    """
    updated = await queue.enqueue(body.to_request())
    return success({"domain": body.domain, "updated": updated})


@router.post("/update/batch")
async def update_records(
    bodies: list[DnsUpdateBody],
    queue: ReconciliationQueue = Depends(get_dns_queue),
) -> dict[str, Any]:
    results = await queue.enqueue_many([b.to_request() for b in bodies])
    return success([
        {"domain": b.domain, "updated": ok} for b, ok in zip(bodies, results)
    ])


@router.get("/check")
async def check_record(
    domain: str = Query(...),
    expected: str | None = Query(None),
    type: RecordType = Query(RecordType.A),
    dns_service: DnsService = Depends(get_dns_service),
) -> dict[str, Any]:
    """
    Reads the live record from the provider and compares it to an expectation.

    Returns:
        The envelope with domain, current_value and matches.
    """
    result = await dns_service.check_record(domain, expected, type.value)
    return success(asdict(result))


@router.get("/records/{node_id}")
async def node_records(
    node_id: int,
    dns_service: DnsService = Depends(get_dns_service),
) -> dict[str, Any]:
    records = dns_service.get_node_records(node_id)
    return success([r.model_dump(mode="json") for r in records])


# ---------------------------------------------------------------------------
# Queue control
# ---------------------------------------------------------------------------


@router.get("/queue")
async def queue_status(queue: ReconciliationQueue = Depends(get_dns_queue)) -> dict[str, Any]:
    return success(asdict(queue.status()))


@router.post("/queue/pause")
async def pause_queue(queue: ReconciliationQueue = Depends(get_dns_queue)) -> dict[str, Any]:
    queue.pause()
    return success(asdict(queue.status()))


@router.post("/queue/start")
async def start_queue(queue: ReconciliationQueue = Depends(get_dns_queue)) -> dict[str, Any]:
    queue.start()
    return success(asdict(queue.status()))


@router.post("/queue/clear")
async def clear_queue(queue: ReconciliationQueue = Depends(get_dns_queue)) -> dict[str, Any]:
    dropped = queue.clear()
    return success({"dropped": dropped, **asdict(queue.status())})

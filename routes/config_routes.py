"""
routes/config_routes.py

Responsibility: Serves rendered node configuration artifacts and template
inspection/reload endpoints.
Does NOT: parse templates or query nodes directly: NodeConfigService and
TemplateRenderer do.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from dependencies import get_node_config_service, get_renderer
from exceptions import NodeNotFoundError, TemplateNotFoundError, UnsupportedConfigTypeError
from routes.responses import error, success
from services.node_config_service import NodeConfigService
from services.template_service import TemplateRenderer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/config")


@router.get("/node/{node_id}/{config_type}")
async def node_config(
    node_id: int,
    config_type: str,
    template: str | None = Query(None),
    service: NodeConfigService = Depends(get_node_config_service),
) -> Response:
    """
    Returns the rendered configuration for a node.

    The body is served raw with application/json (xray) or text/plain
    (nginx); errors use the JSON envelope.

    Args:
        node_id: The node's primary key.
        config_type: "xray" or "nginx".
        template: Optional template name (default "default").
        service: Builds the context and renders.

    Returns:
        The artifact, or a 400/404 error envelope.
    """
    try:
        rendered = service.render_node_config(node_id, config_type, template)
    except UnsupportedConfigTypeError as exc:
        return error(400, "INVALID_CONFIG_TYPE", str(exc))
    except NodeNotFoundError as exc:
        return error(404, "NODE_NOT_FOUND", str(exc))
    except TemplateNotFoundError as exc:
        return error(404, "TEMPLATE_NOT_FOUND", str(exc))

    return Response(content=rendered.body, media_type=rendered.content_type)


@router.get("/templates/{config_type}")
async def list_templates(
    config_type: str,
    renderer: TemplateRenderer = Depends(get_renderer),
) -> Any:
    try:
        names = renderer.list_templates(config_type)
    except UnsupportedConfigTypeError as exc:
        return error(400, "INVALID_CONFIG_TYPE", str(exc))
    return success(names)


@router.get("/templates/{config_type}/{template_name}")
async def get_template(
    config_type: str,
    template_name: str,
    renderer: TemplateRenderer = Depends(get_renderer),
) -> Any:
    try:
        template = renderer.get_template(config_type, template_name)
    except UnsupportedConfigTypeError as exc:
        return error(400, "INVALID_CONFIG_TYPE", str(exc))
    except TemplateNotFoundError as exc:
        return error(404, "TEMPLATE_NOT_FOUND", str(exc))
    return success(asdict(template))


@router.post("/templates/reload")
async def reload_templates(renderer: TemplateRenderer = Depends(get_renderer)) -> dict[str, Any]:
    evicted = renderer.reload()
    return success({"evicted": evicted})

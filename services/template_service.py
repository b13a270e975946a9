"""
services/template_service.py

Responsibility: Loads, caches, lists and renders node configuration templates
(xray JSON and nginx conf) by substituting {{NAME}} placeholders.
Does NOT: query the database: the NodeConfigContext is built by
NodeConfigService and passed in.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from exceptions import TemplateNotFoundError, UnsupportedConfigTypeError

logger = logging.getLogger(__name__)

# Template family → file extension and served content type
CONFIG_TYPES: dict[str, tuple[str, str]] = {
    "xray": ("json", "application/json"),
    "nginx": ("conf", "text/plain"),
}

DEFAULT_TEMPLATE = "default"

_PLACEHOLDER = re.compile(r"\{\{([A-Z0-9_]+)\}\}")


@dataclass(frozen=True)
class HostContext:
    ip: str = ""
    ipv6: str | None = None
    region: str | None = None


@dataclass(frozen=True)
class NodeConfigContext:
    """Read-only projection of a node and its host, built per render call."""

    id: int
    name: str
    domain: str
    port: int
    additional_ports: list[int] = field(default_factory=list)
    proxy_type: str = ""
    proxy_config: dict[str, Any] = field(default_factory=dict)
    host: HostContext | None = None


@dataclass(frozen=True)
class ConfigTemplate:
    name: str
    type: str
    content: str
    variables: list[str]


def content_type_for(config_type: str) -> str:
    return CONFIG_TYPES[_check_type(config_type)][1]


def build_substitutions(context: NodeConfigContext) -> dict[str, str]:
    """
    Maps every known placeholder name to its value for the given context.

    Missing optional values become empty strings, never "None".

    Args:
        context: The node's resolved configuration context.

    Returns:
        A dict of placeholder name (without braces) to replacement text.
    """
    host = context.host
    return {
        "NODE_ID": str(context.id),
        "NODE_NAME": context.name or "",
        "DOMAIN": context.domain or "",
        "PORT": str(context.port),
        "PROXY_TYPE": context.proxy_type or "",
        "HOST_IP": (host.ip or "") if host else "",
        "HOST_IPV6": (host.ipv6 or "") if host else "",
        "HOST_REGION": (host.region or "") if host else "",
        "ADDITIONAL_PORTS": ",".join(str(p) for p in context.additional_ports),
    }


def substitute(template: str, values: dict[str, str]) -> str:
    """
    Replaces each {{NAME}} token whose NAME is in values.

    The template is scanned exactly once, so replacement text is never
    re-examined for further placeholders. Unknown tokens are left as-is.

    Args:
        template: Raw template text.
        values: Placeholder name to replacement text.

    Returns:
        The substituted text.
    """

    def _replace(match: re.Match[str]) -> str:
        return values.get(match.group(1), match.group(0))

    return _PLACEHOLDER.sub(_replace, template)


def extract_variables(content: str) -> list[str]:
    """Returns the distinct placeholder names in order of first appearance."""
    return list(dict.fromkeys(_PLACEHOLDER.findall(content)))


def _check_type(config_type: str) -> str:
    if config_type not in CONFIG_TYPES:
        raise UnsupportedConfigTypeError(
            f"Unsupported config type: {config_type}. Supported: {', '.join(CONFIG_TYPES)}"
        )
    return config_type


class TemplateRenderer:
    """
    Renders configuration artifacts from templates on disk.

    Template bodies are cached in memory by (type, name) until reload() is
    called; there is no TTL.

    Layout: <template_dir>/xray/<name>.json and <template_dir>/nginx/<name>.conf
    """

    def __init__(self, template_dir: str | Path) -> None:
        self._root = Path(template_dir)
        self._cache: dict[tuple[str, str], str] = {}

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    def render(self, config_type: str, template_name: str | None, context: NodeConfigContext) -> str:
        """
        Renders the named template for a node.

        Args:
            config_type: "xray" or "nginx".
            template_name: Template file stem; None means "default".
            context: The node's resolved configuration context.

        Returns:
            The fully substituted configuration text.

        Raises:
            TemplateNotFoundError: If the template file does not exist.
            UnsupportedConfigTypeError: If config_type is unknown.
        """
        body = self.load(config_type, template_name or DEFAULT_TEMPLATE)
        rendered = substitute(body, build_substitutions(context))
        logger.debug("Rendered %s/%s for node %s.", config_type, template_name, context.id)
        return rendered

    def load(self, config_type: str, template_name: str) -> str:
        """
        Returns the raw template body, reading and caching it on first use.

        Raises:
            TemplateNotFoundError: If the template file does not exist.
            UnsupportedConfigTypeError: If config_type is unknown.
        """
        _check_type(config_type)
        key = (config_type, template_name)

        cached = self._cache.get(key)
        if cached is not None:
            return cached

        path = self._template_path(config_type, template_name)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to load template %s/%s: %s", config_type, template_name, exc)
            raise TemplateNotFoundError(f"Template not found: {config_type}/{template_name}") from exc

        self._cache[key] = content
        logger.debug("Loaded template: %s:%s", config_type, template_name)
        return content

    def get_template(self, config_type: str, template_name: str) -> ConfigTemplate:
        """
        Returns a template with the placeholder variables it references.

        Raises:
            TemplateNotFoundError: If the template file does not exist.
        """
        content = self.load(config_type, template_name)
        return ConfigTemplate(
            name=template_name,
            type=config_type,
            content=content,
            variables=extract_variables(content),
        )

    def list_templates(self, config_type: str) -> list[str]:
        """
        Lists template names available for a config type.

        Args:
            config_type: "xray" or "nginx".

        Returns:
            Sorted file stems; empty if the directory does not exist.
        """
        ext = CONFIG_TYPES[_check_type(config_type)][0]
        directory = self._root / config_type
        if not directory.is_dir():
            logger.warning("Template directory missing: %s", directory)
            return []
        return sorted(p.stem for p in directory.glob(f"*.{ext}") if p.is_file())

    def reload(self) -> int:
        """
        Clears the template cache so the next render re-reads from disk.

        Returns:
            The number of cache entries evicted.
        """
        evicted = len(self._cache)
        self._cache.clear()
        logger.info("Template cache cleared (%d entries).", evicted)
        return evicted

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    def _template_path(self, config_type: str, template_name: str) -> Path:
        # NOTE: Names are file stems only; anything path-like is treated as missing.
        if not template_name or "/" in template_name or "\\" in template_name or template_name.startswith("."):
            raise TemplateNotFoundError(f"Template not found: {config_type}/{template_name}")
        ext = CONFIG_TYPES[config_type][0]
        return self._root / config_type / f"{template_name}.{ext}"

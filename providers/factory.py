"""
providers/factory.py

Responsibility: Maps a configured provider name to a concrete DNSProvider
instance through a registry.
Does NOT: perform DNS calls or read configuration from the database.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum

import httpx

from exceptions import (
    MissingCredentialError,
    ProviderNotImplementedError,
    UnsupportedProviderError,
)
from providers.cloudflare_client import DEFAULT_TIMEOUT, CloudflareClient
from providers.dns_provider import DNSProvider

logger = logging.getLogger(__name__)


class ProviderName(str, Enum):
    """DNS vendors the configuration may name."""

    CLOUDFLARE = "cloudflare"
    GODADDY = "godaddy"
    NAMECHEAP = "namecheap"


ProviderBuilder = Callable[..., DNSProvider]


def _build_cloudflare(
    http_client: httpx.AsyncClient,
    api_token: str,
    api_secret: str = "",
    zone_id: str = "",
    timeout: float = DEFAULT_TIMEOUT,
) -> DNSProvider:
    if not api_token:
        raise MissingCredentialError("Cloudflare requires CLOUDFLARE_API_TOKEN to be set")
    return CloudflareClient(http_client, api_token, zone_id=zone_id, timeout=timeout)


# Adding a provider means one enum member plus one entry here.
_REGISTRY: dict[ProviderName, ProviderBuilder] = {
    ProviderName.CLOUDFLARE: _build_cloudflare,
}


def create_dns_provider(
    provider: str,
    http_client: httpx.AsyncClient,
    api_token: str,
    api_secret: str = "",
    zone_id: str = "",
    timeout: float = DEFAULT_TIMEOUT,
) -> DNSProvider:
    """
    Builds the DNSProvider registered for the given provider name.

    Configuration problems are raised immediately so a misconfigured
    process fails at startup rather than on the first queued update.

    Args:
        provider: Provider name, case-insensitive (e.g. "cloudflare").
        http_client: Shared httpx.AsyncClient used for all vendor calls.
        api_token: Primary credential (API token or key).
        api_secret: Secondary credential for vendors that need one.
        zone_id: Optional static zone identifier.
        timeout: Per-request timeout in seconds.

    Returns:
        A DNSProvider implementation.

    Raises:
        UnsupportedProviderError: If the name is not a known provider.
        ProviderNotImplementedError: If the provider is known but not built.
        MissingCredentialError: If a required credential is empty.
    """
    try:
        name = ProviderName(provider.strip().lower())
    except ValueError:
        supported = ", ".join(p.value for p in ProviderName)
        raise UnsupportedProviderError(
            f"Unsupported DNS provider: {provider}. Supported providers: {supported}"
        ) from None

    builder = _REGISTRY.get(name)
    if builder is None:
        raise ProviderNotImplementedError(
            f"{name.value} provider not yet implemented. Please use cloudflare."
        )

    dns_provider = builder(
        http_client,
        api_token,
        api_secret=api_secret,
        zone_id=zone_id,
        timeout=timeout,
    )
    logger.info("DNS provider initialised: %s", name.value)
    return dns_provider

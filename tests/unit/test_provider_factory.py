"""
tests/unit/test_provider_factory.py

Unit tests for providers/factory.py.
"""

from __future__ import annotations

import pytest

from exceptions import (
    MissingCredentialError,
    ProviderConfigError,
    ProviderNotImplementedError,
    UnsupportedProviderError,
)
from providers.cloudflare_client import CloudflareClient
from providers.dns_provider import DNSProvider
from providers.factory import create_dns_provider


async def test_creates_cloudflare_provider(http_client):
    provider = create_dns_provider("Cloudflare", http_client, api_token="tok")

    assert isinstance(provider, CloudflareClient)
    assert isinstance(provider, DNSProvider)
    assert provider.name == "cloudflare"


async def test_missing_token_fails_fast(http_client):
    with pytest.raises(MissingCredentialError):
        create_dns_provider("cloudflare", http_client, api_token="")


@pytest.mark.parametrize("name", ["godaddy", "namecheap"])
async def test_known_but_unimplemented_provider(http_client, name):
    with pytest.raises(ProviderNotImplementedError, match="not yet implemented"):
        create_dns_provider(name, http_client, api_token="key", api_secret="secret")


async def test_unknown_provider(http_client):
    with pytest.raises(UnsupportedProviderError, match="Supported providers"):
        create_dns_provider("route53", http_client, api_token="key")


async def test_config_errors_share_a_base_class(http_client):
    """Callers can catch every construction problem with one except clause."""
    for name, token in (("cloudflare", ""), ("godaddy", "k"), ("bogus", "k")):
        with pytest.raises(ProviderConfigError):
            create_dns_provider(name, http_client, api_token=token)

"""
providers/cloudflare_client.py

Responsibility: Implements the DNSProvider protocol using the Cloudflare REST API.
All Cloudflare HTTP calls are concentrated here: no other file may call the
Cloudflare API directly.
Does NOT: read configuration, touch the database, or schedule work.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from exceptions import DnsProviderError
from providers.dns_provider import ProviderRecord

logger = logging.getLogger(__name__)

_CLOUDFLARE_BASE = "https://api.cloudflare.com/client/v4"

# Seconds, applied to every Cloudflare request
DEFAULT_TIMEOUT = 10.0


def _result_list(body: dict[str, Any]) -> list[Any]:
    result = body.get("result") or []
    if not isinstance(result, list):
        raise DnsProviderError(f"Expected a list result from Cloudflare, got {type(result).__name__}")
    return result


def base_domain(domain: str) -> str:
    """
    Returns the last two labels of a domain, e.g. "hk01.example.com" → "example.com".

    Args:
        domain: A fully-qualified DNS name.

    Returns:
        The zone name used for zone-ID lookup.
    """
    parts = domain.strip(".").split(".")
    if len(parts) >= 2:
        return ".".join(parts[-2:])
    return domain


class CloudflareClient:
    """
    Implements DNSProvider for the Cloudflare DNS REST API (v4).

    All outbound Cloudflare requests go through the injected httpx.AsyncClient,
    making this class fully testable without real network calls (use respx.mock).

    Collaborators:
        - httpx.AsyncClient: injected HTTP client; must be kept alive externally
        - DNSProvider: this class satisfies the protocol contract
    """

    name = "cloudflare"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_token: str,
        zone_id: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """
        Initialises the client with an HTTP client and a Cloudflare API token.

        Args:
            http_client: A long-lived httpx.AsyncClient instance.
            api_token: A Cloudflare API token with DNS edit permissions.
            zone_id: Optional static zone ID. When empty the zone is looked up
                     from the domain's last two labels and cached per zone.
            timeout: Per-request timeout in seconds.
        """
        self._client = http_client
        self._zone_id = zone_id or None
        self._timeout = timeout
        self._zone_cache: dict[str, str] = {}
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }

    # ---------------------------------------------------------------------------
    # DNSProvider implementation
    # ---------------------------------------------------------------------------

    async def update_record(self, domain: str, record_type: str, value: str) -> bool:
        """
        Creates or updates the (domain, record_type) record so it holds value.

        Looks up an existing record first and updates it by ID, so repeated
        calls never create duplicates when serialised.

        Args:
            domain: The fully-qualified DNS name.
            record_type: "A", "AAAA" or "CNAME".
            value: The new record content.

        Returns:
            True on success, False if any Cloudflare call failed.
        """
        try:
            zone_id = await self._resolve_zone_id(domain)
            existing = await self._find_record(zone_id, domain, record_type)

            if existing is not None:
                await self._update_existing(zone_id, existing, value)
                logger.info("Updated DNS record: %s (%s) -> %s", domain, record_type, value)
            else:
                await self._create(zone_id, domain, record_type, value)
                logger.info("Created DNS record: %s (%s) -> %s", domain, record_type, value)
            return True

        except DnsProviderError as exc:
            logger.error("Failed to update DNS record for %s: %s", domain, exc)
            return False

    async def get_record(self, domain: str, record_type: str) -> str | None:
        """
        Returns the current content of the (domain, record_type) record.

        Args:
            domain: The fully-qualified DNS name to look up.
            record_type: "A", "AAAA" or "CNAME".

        Returns:
            The record content, or None if not found or the lookup failed.
        """
        try:
            zone_id = await self._resolve_zone_id(domain)
            record = await self._find_record(zone_id, domain, record_type)
        except DnsProviderError as exc:
            logger.error("Failed to get DNS record for %s: %s", domain, exc)
            return None

        return record.content if record is not None else None

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    async def _resolve_zone_id(self, domain: str) -> str:
        """
        Returns the static zone ID, or looks it up by the domain's base name.

        Raises:
            DnsProviderError: If Cloudflare has no zone for the base domain.
        """
        if self._zone_id:
            return self._zone_id

        zone_name = base_domain(domain)
        cached = self._zone_cache.get(zone_name)
        if cached:
            return cached

        url = f"{_CLOUDFLARE_BASE}/zones"
        logger.debug("GET %s name=%s", url, zone_name)
        data = await self._request("GET", url, params={"name": zone_name})

        result = _result_list(data)
        if not result:
            raise DnsProviderError(f"Could not determine zone ID for {zone_name}")

        try:
            zone_id = result[0]["id"]
        except (KeyError, TypeError) as exc:
            raise DnsProviderError(f"Malformed zone in Cloudflare response: {result[0]!r}") from exc
        self._zone_cache[zone_name] = zone_id
        return zone_id

    async def _find_record(self, zone_id: str, domain: str, record_type: str) -> ProviderRecord | None:
        url = f"{_CLOUDFLARE_BASE}/zones/{zone_id}/dns_records"
        params = {"type": record_type, "name": domain}

        logger.debug("GET %s params=%s", url, params)
        data = await self._request("GET", url, params=params)

        result = _result_list(data)
        if not result:
            return None
        try:
            return self._parse_record(result[0])
        except (KeyError, TypeError) as exc:
            raise DnsProviderError(f"Malformed DNS record in Cloudflare response: {result[0]!r}") from exc

    async def _update_existing(self, zone_id: str, record: ProviderRecord, value: str) -> None:
        url = f"{_CLOUDFLARE_BASE}/zones/{zone_id}/dns_records/{record.id}"
        payload: dict[str, Any] = {
            "type": record.type,
            "name": record.name,
            "content": value,
            "ttl": record.ttl,
            "proxied": record.proxied,
        }

        logger.debug("PUT %s payload=%s", url, payload)
        await self._request("PUT", url, json=payload)

    async def _create(self, zone_id: str, domain: str, record_type: str, value: str) -> None:
        url = f"{_CLOUDFLARE_BASE}/zones/{zone_id}/dns_records"
        payload: dict[str, Any] = {
            "type": record_type,
            "name": domain,
            "content": value,
            "ttl": 1,      # 1 = automatic TTL on Cloudflare
            "proxied": False,
        }

        logger.debug("POST %s payload=%s", url, payload)
        await self._request("POST", url, json=payload)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Sends an authenticated HTTP request to the Cloudflare API.

        Args:
            method: HTTP verb ("GET", "PUT", "POST").
            url: Full URL of the Cloudflare API endpoint.
            params: Optional query-string parameters.
            json: Optional JSON request body.

        Returns:
            The parsed JSON response body as a dict.

        Raises:
            DnsProviderError: If the HTTP call fails, times out, or the API
                              returns success=false in the response body.
        """
        try:
            response = await self._client.request(
                method,
                url,
                headers=self._headers,
                params=params,
                json=json,
                timeout=self._timeout,
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            raise DnsProviderError(
                f"Cloudflare API error {exc.response.status_code} for {method} {url}: "
                f"{exc.response.text}"
            ) from exc
        except httpx.RequestError as exc:
            raise DnsProviderError(
                f"Network error calling Cloudflare API ({method} {url}): {exc}"
            ) from exc
        except ValueError as exc:
            raise DnsProviderError(
                f"Cloudflare API returned a non-JSON body for {method} {url}"
            ) from exc

        if not isinstance(body, dict):
            raise DnsProviderError(
                f"Cloudflare API returned a non-object body for {method} {url}"
            )

        # NOTE: Cloudflare wraps all responses in {"success": bool, "result": ...}
        if not body.get("success", False):
            errors = body.get("errors", [])
            raise DnsProviderError(
                f"Cloudflare API returned success=false for {method} {url}. "
                f"Errors: {errors}"
            )

        return body

    @staticmethod
    def _parse_record(raw: dict[str, Any]) -> ProviderRecord:
        return ProviderRecord(
            id=raw["id"],
            name=raw["name"],
            content=raw["content"],
            type=raw.get("type", "A"),
            ttl=raw.get("ttl", 1),
            proxied=raw.get("proxied", False),
        )

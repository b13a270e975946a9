"""
tests/unit/test_cloudflare_client.py

Unit tests for providers/cloudflare_client.py.
All Cloudflare API calls are intercepted by respx: no real network traffic.
"""

from __future__ import annotations

import json
import re

import httpx
import pytest

from providers.cloudflare_client import CloudflareClient, base_domain

_ZONE = "zone123"
_TOKEN = "test-token"
_BASE = "https://api.cloudflare.com/client/v4"


def _cf_response(result, success=True):
    """Helper: build a Cloudflare-shaped JSON response dict."""
    return {"success": success, "result": result, "errors": []}


def _record_dict(**kwargs):
    return {
        "id": kwargs.get("id", "rec1"),
        "name": kwargs.get("name", "hk01.example.com"),
        "content": kwargs.get("content", "1.2.3.4"),
        "type": kwargs.get("type", "A"),
        "ttl": 1,
        "proxied": False,
        "zone_id": _ZONE,
    }


class _FakeZone:
    """In-memory stand-in for one Cloudflare zone's dns_records collection."""

    def __init__(self):
        self.records: dict[str, dict] = {}
        self.creates = 0
        self.updated_ids: list[str] = []

    def list(self, request):
        params = request.url.params
        found = [
            r for r in self.records.values()
            if r["name"] == params.get("name") and r["type"] == params.get("type")
        ]
        return httpx.Response(200, json=_cf_response(found))

    def create(self, request):
        body = json.loads(request.content)
        self.creates += 1
        record = _record_dict(id=f"rec{self.creates}", name=body["name"],
                              content=body["content"], type=body["type"])
        self.records[record["id"]] = record
        return httpx.Response(200, json=_cf_response(record))

    def update(self, request, record_id):
        body = json.loads(request.content)
        self.updated_ids.append(record_id)
        self.records[record_id]["content"] = body["content"]
        return httpx.Response(200, json=_cf_response(self.records[record_id]))


def _install_zone(mock_http, zone: _FakeZone) -> None:
    records_url = f"{_BASE}/zones/{_ZONE}/dns_records"
    mock_http.get(records_url).mock(side_effect=zone.list)
    mock_http.post(records_url).mock(side_effect=zone.create)
    mock_http.put(url__regex=re.escape(records_url) + r"/(?P<record_id>[^/]+)$").mock(
        side_effect=zone.update
    )


# ---------------------------------------------------------------------------
# update_record
# ---------------------------------------------------------------------------


async def test_update_record_creates_when_absent(mock_http, http_client):
    """update_record issues a POST with automatic TTL when no record exists."""
    zone = _FakeZone()
    _install_zone(mock_http, zone)

    cf = CloudflareClient(http_client, _TOKEN, zone_id=_ZONE)
    ok = await cf.update_record("hk01.example.com", "A", "1.2.3.4")

    assert ok is True
    assert zone.creates == 1
    assert zone.updated_ids == []
    (record,) = zone.records.values()
    assert record["ttl"] == 1
    assert record["content"] == "1.2.3.4"


async def test_update_record_twice_updates_same_record(mock_http, http_client):
    """Two serialised updates leave exactly one record holding the latest value."""
    zone = _FakeZone()
    _install_zone(mock_http, zone)

    cf = CloudflareClient(http_client, _TOKEN, zone_id=_ZONE)
    assert await cf.update_record("hk01.example.com", "A", "1.2.3.4") is True
    assert await cf.update_record("hk01.example.com", "A", "5.6.7.8") is True

    assert zone.creates == 1
    assert zone.updated_ids == ["rec1"]
    assert len(zone.records) == 1
    assert zone.records["rec1"]["content"] == "5.6.7.8"


async def test_update_record_keeps_types_separate(mock_http, http_client):
    """An AAAA write does not overwrite an existing A record for the same name."""
    zone = _FakeZone()
    _install_zone(mock_http, zone)

    cf = CloudflareClient(http_client, _TOKEN, zone_id=_ZONE)
    await cf.update_record("hk01.example.com", "A", "1.2.3.4")
    await cf.update_record("hk01.example.com", "AAAA", "2001:db8::1")

    assert zone.creates == 2
    assert sorted(r["type"] for r in zone.records.values()) == ["A", "AAAA"]


async def test_update_record_looks_up_zone_from_base_domain(mock_http, http_client):
    """Without a static zone ID, the zone is resolved from the last two labels."""
    zones_route = mock_http.get(f"{_BASE}/zones").mock(
        return_value=httpx.Response(200, json=_cf_response([{"id": _ZONE, "name": "example.com"}]))
    )
    zone = _FakeZone()
    _install_zone(mock_http, zone)

    cf = CloudflareClient(http_client, _TOKEN)
    assert await cf.update_record("hk01.example.com", "A", "1.2.3.4") is True
    assert await cf.update_record("hk01.example.com", "A", "1.2.3.5") is True

    assert zones_route.calls.last.request.url.params["name"] == "example.com"
    # Zone ID is cached after the first lookup
    assert zones_route.call_count == 1


async def test_update_record_returns_false_when_zone_unknown(mock_http, http_client):
    """update_record reports False when Cloudflare has no matching zone."""
    mock_http.get(f"{_BASE}/zones").mock(
        return_value=httpx.Response(200, json=_cf_response([]))
    )
    cf = CloudflareClient(http_client, _TOKEN)

    assert await cf.update_record("hk01.unknown.org", "A", "1.2.3.4") is False


async def test_update_record_returns_false_on_http_error(mock_http, http_client):
    """An HTTP 500 from the create call is reported as False, not raised."""
    records_url = f"{_BASE}/zones/{_ZONE}/dns_records"
    mock_http.get(records_url).mock(return_value=httpx.Response(200, json=_cf_response([])))
    mock_http.post(records_url).mock(return_value=httpx.Response(500, text="boom"))

    cf = CloudflareClient(http_client, _TOKEN, zone_id=_ZONE)
    assert await cf.update_record("hk01.example.com", "A", "1.2.3.4") is False


async def test_update_record_returns_false_on_network_error(mock_http, http_client):
    """A transport failure is reported as False, not raised."""
    mock_http.get(f"{_BASE}/zones/{_ZONE}/dns_records").mock(
        side_effect=httpx.ConnectError("connection refused")
    )
    cf = CloudflareClient(http_client, _TOKEN, zone_id=_ZONE)

    assert await cf.update_record("hk01.example.com", "A", "1.2.3.4") is False


# ---------------------------------------------------------------------------
# get_record
# ---------------------------------------------------------------------------


async def test_get_record_returns_content(mock_http, http_client):
    """get_record returns the record content when one exists."""
    mock_http.get(f"{_BASE}/zones/{_ZONE}/dns_records").mock(
        return_value=httpx.Response(200, json=_cf_response([_record_dict(content="9.9.9.9")]))
    )
    cf = CloudflareClient(http_client, _TOKEN, zone_id=_ZONE)

    assert await cf.get_record("hk01.example.com", "A") == "9.9.9.9"


async def test_get_record_returns_none_when_not_found(mock_http, http_client):
    mock_http.get(f"{_BASE}/zones/{_ZONE}/dns_records").mock(
        return_value=httpx.Response(200, json=_cf_response([]))
    )
    cf = CloudflareClient(http_client, _TOKEN, zone_id=_ZONE)

    assert await cf.get_record("missing.example.com", "A") is None


async def test_get_record_returns_none_on_api_failure(mock_http, http_client):
    """success=false in the envelope is treated as absent."""
    mock_http.get(f"{_BASE}/zones/{_ZONE}/dns_records").mock(
        return_value=httpx.Response(
            200, json={"success": False, "errors": [{"message": "bad token"}], "result": []}
        )
    )
    cf = CloudflareClient(http_client, _TOKEN, zone_id=_ZONE)

    assert await cf.get_record("hk01.example.com", "A") is None


async def test_requests_carry_bearer_token(mock_http, http_client):
    route = mock_http.get(f"{_BASE}/zones/{_ZONE}/dns_records").mock(
        return_value=httpx.Response(200, json=_cf_response([]))
    )
    cf = CloudflareClient(http_client, _TOKEN, zone_id=_ZONE)
    await cf.get_record("hk01.example.com", "A")

    assert route.calls.last.request.headers["Authorization"] == f"Bearer {_TOKEN}"


async def test_update_record_returns_false_on_malformed_zone(mock_http, http_client):
    """A zone entry without an id is reported as False, not raised."""
    mock_http.get(f"{_BASE}/zones").mock(
        return_value=httpx.Response(200, json=_cf_response([{"name": "example.com"}]))
    )
    cf = CloudflareClient(http_client, _TOKEN)

    assert await cf.update_record("hk01.example.com", "A", "1.2.3.4") is False


@pytest.mark.parametrize("body", [[1, 2], "ok", None])
async def test_get_record_returns_none_on_non_object_body(mock_http, http_client, body):
    mock_http.get(f"{_BASE}/zones/{_ZONE}/dns_records").mock(
        return_value=httpx.Response(200, json=body)
    )
    cf = CloudflareClient(http_client, _TOKEN, zone_id=_ZONE)

    assert await cf.get_record("hk01.example.com", "A") is None


async def test_get_record_returns_none_when_result_is_not_a_list(mock_http, http_client):
    mock_http.get(f"{_BASE}/zones/{_ZONE}/dns_records").mock(
        return_value=httpx.Response(200, json=_cf_response({"id": "rec1"}))
    )
    cf = CloudflareClient(http_client, _TOKEN, zone_id=_ZONE)

    assert await cf.get_record("hk01.example.com", "A") is None


# ---------------------------------------------------------------------------
# base_domain
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "domain, expected",
    [
        ("hk01.example.com", "example.com"),
        ("a.b.c.example.net", "example.net"),
        ("example.com", "example.com"),
        ("localhost", "localhost"),
    ],
)
def test_base_domain(domain, expected):
    assert base_domain(domain) == expected

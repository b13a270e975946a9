"""
providers/dns_provider.py

Responsibility: Defines the DNSProvider Protocol, the record-type enum and the
ProviderRecord value object.
Does NOT: make HTTP calls, access the database, or implement any provider logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable


class RecordType(str, Enum):
    """DNS record types the reconciliation pipeline manages."""

    A = "A"
    AAAA = "AAAA"
    CNAME = "CNAME"


# ---------------------------------------------------------------------------
# Value object: a record as observed at the provider
# ---------------------------------------------------------------------------


@dataclass
class ProviderRecord:
    """
    Represents a single DNS record as returned by a vendor API.

    Used internally by provider implementations for the find-then-write
    sequence; callers of DNSProvider only ever see the record's value.
    """

    # Provider-assigned unique identifier for the record
    id: str

    # Fully-qualified DNS name, e.g. "hk01.example.com"
    name: str

    content: str
    type: str

    # TTL in seconds; 1 means "automatic" on Cloudflare
    ttl: int = 1
    proxied: bool = False


# ---------------------------------------------------------------------------
# Abstract interface: all DNS providers must implement this contract
# ---------------------------------------------------------------------------


@runtime_checkable
class DNSProvider(Protocol):
    """
    Capability interface over concrete DNS vendors.

    Translates "ensure a record of this type/name has this value" into
    vendor-specific API calls. Implementations must never raise transport
    or vendor errors past these two methods: failures are logged and
    reported as False/None.

    The find-then-write sequence in update_record is not transactional, so
    all mutations must be funnelled through the ReconciliationQueue.
    """

    name: str

    async def update_record(self, domain: str, record_type: str, value: str) -> bool:
        """
        Ensures exactly one record of (domain, record_type) holds value.

        Updates the existing record in place when one is found, otherwise
        creates it.

        Args:
            domain: Fully-qualified DNS name, e.g. "hk01.example.com".
            record_type: "A", "AAAA" or "CNAME".
            value: The record content (IP address or target hostname).

        Returns:
            True if the provider accepted the write, False on any failure.
        """
        ...

    async def get_record(self, domain: str, record_type: str) -> str | None:
        """
        Returns the current value of the (domain, record_type) record.

        Args:
            domain: Fully-qualified DNS name to look up.
            record_type: "A", "AAAA" or "CNAME".

        Returns:
            The record content, or None if absent or the lookup failed.
        """
        ...

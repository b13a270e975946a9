"""
exceptions.py

Responsibility: Defines all custom exception classes used across the application.
Does NOT: contain business logic, logging, or HTTP handling.
"""

from __future__ import annotations


class DnsProviderError(Exception):
    """
    Raised inside a DNSProvider implementation when a DNS API call fails.

    Includes a human-readable message describing the failure. Provider
    implementations catch this at their public boundary and report
    False/None to the caller instead of propagating it.
    """


class ProviderConfigError(Exception):
    """
    Base class for DNS provider configuration errors.

    Raised synchronously by create_dns_provider(). These are never retried:
    the process configuration must be fixed first.
    """


class UnsupportedProviderError(ProviderConfigError):
    """Raised when the configured provider name is not recognised at all."""


class ProviderNotImplementedError(ProviderConfigError):
    """
    Raised when the provider name is known but no implementation is
    registered for it yet (e.g. "godaddy").
    """


class MissingCredentialError(ProviderConfigError):
    """Raised when a provider requires a credential that is not configured."""


class TemplateNotFoundError(Exception):
    """
    Raised by TemplateRenderer when no template file exists for the requested
    (config type, template name) pair.
    """


class UnsupportedConfigTypeError(Exception):
    """Raised when a config type other than "xray" or "nginx" is requested."""


class NodeNotFoundError(Exception):
    """
    Raised when a render request references a node that does not exist in
    the store, so no NodeConfigContext can be built.
    """

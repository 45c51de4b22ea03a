"""Deployment environments and portal endpoint classification."""

from __future__ import annotations

from enum import Enum

PRODUCTION_PREFIX = "wss://api.firezone.dev"
STAGING_PREFIX = "wss://api.firez.one"


class Environment(str, Enum):
    """Environment reported alongside every event."""

    # Placeholder until the portal endpoint is known
    ENTRYPOINT = "entrypoint"
    PRODUCTION = "production"
    STAGING = "staging"
    DISABLED = "disabled"


class EnvironmentResult(str, Enum):
    """Outcome of ``TelemetryContext.set_environment_or_close``."""

    PRODUCTION = "production"
    STAGING = "staging"
    CLOSED = "closed"
    ALREADY_CLOSED = "already_closed"


def classify_endpoint(endpoint: str) -> Environment:
    """Map a portal API endpoint to an environment.

    The test is an exact, case-sensitive prefix match. Anything that is not a
    known Firezone portal maps to ``Environment.DISABLED``.

    Examples:
        >>> classify_endpoint("wss://api.firezone.dev/client")
        <Environment.PRODUCTION: 'production'>
        >>> classify_endpoint("ws://localhost:8081")
        <Environment.DISABLED: 'disabled'>
    """
    if endpoint.startswith(PRODUCTION_PREFIX):
        return Environment.PRODUCTION
    if endpoint.startswith(STAGING_PREFIX):
        return Environment.STAGING
    return Environment.DISABLED

"""Transports that deliver captured errors to the ingestion backend.

``TelemetryContext`` only talks to the ``Transport`` protocol. The production
implementation, ``SentryTransport``, wraps the Sentry SDK and is compatible
with both Sentry and GlitchTip backends.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import sentry_sdk

from .environment import Environment
from .privacy import create_before_send_filter

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Channel through which captured errors leave the process."""

    def open(
        self,
        dsn: str,
        release_tag: str,
        distribution_tag: str,
        enable_hang_tracking: bool,
    ) -> Any:
        """Open a session and return its handle."""
        ...

    def set_scope_environment(self, session: Any, environment: str) -> None:
        """Set the environment attached to subsequent events."""
        ...

    def set_scope_user(self, session: Any, user_id: str, data: Dict[str, str]) -> None:
        """Set the user attached to subsequent events."""
        ...

    def submit(self, session: Any, error: BaseException) -> None:
        """Queue one error for delivery without waiting on the network."""
        ...

    def close(self, session: Any) -> None:
        """Tear the session down."""
        ...


class SentrySession:
    """A dedicated Sentry client and scope for one telemetry session."""

    def __init__(self) -> None:
        self.environment: str = Environment.ENTRYPOINT.value
        self.client: Optional[Any] = None
        self.scope: Optional[Any] = None

    @property
    def closed(self) -> bool:
        """Whether the session has been torn down."""
        return self.client is None


class SentryTransport:
    """Transport backed by the Sentry SDK.

    Each session owns its own ``sentry_sdk.Client`` and ``sentry_sdk.Scope``
    rather than the process-global hub, so closing a session cannot affect
    other users of the SDK in the same process.
    """

    def __init__(
        self,
        sample_rate: float = 1.0,
        flush_timeout: float = 2.0,
        client_options: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize the transport.

        Args:
            sample_rate: Fraction of error events sent to the backend.
            flush_timeout: Seconds to wait for queued events when closing.
            client_options: Extra options passed to ``sentry_sdk.Client``,
                e.g. a custom ``transport``.
        """
        self.sample_rate = sample_rate
        self.flush_timeout = flush_timeout
        self.client_options = dict(client_options or {})

    def open(
        self,
        dsn: str,
        release_tag: str,
        distribution_tag: str,
        enable_hang_tracking: bool,
    ) -> SentrySession:
        session = SentrySession()

        session.client = sentry_sdk.Client(
            dsn=dsn,
            release=release_tag,
            dist=distribution_tag,
            environment=session.environment,
            sample_rate=self.sample_rate,
            send_default_pii=False,
            default_integrations=False,
            before_send=create_before_send_filter(lambda: session.environment),
            **self.client_options,
        )
        session.scope = sentry_sdk.Scope(client=session.client)
        # The Python SDK has no app hang detector, so the flag is only recorded
        session.scope.set_tag("app_hang_tracking", enable_hang_tracking)

        logger.debug("Opened Sentry session for %s (%s)", release_tag, distribution_tag)
        return session

    def set_scope_environment(self, session: SentrySession, environment: str) -> None:
        session.environment = environment
        if session.scope is not None:
            session.scope.set_tag("environment", environment)

    def set_scope_user(
        self,
        session: SentrySession,
        user_id: str,
        data: Dict[str, str],
    ) -> None:
        if session.scope is not None:
            session.scope.set_user({"id": user_id, "data": dict(data)})

    def submit(self, session: SentrySession, error: BaseException) -> None:
        if session.closed or session.scope is None:
            return
        # Captures resolve their client from the active scopes, not from the
        # scope they are called on
        with sentry_sdk.new_scope() as scope:
            scope.set_client(session.client)
            scope.update_from_scope(session.scope)
            scope.capture_exception(error)

    def close(self, session: SentrySession) -> None:
        client, session.client, session.scope = session.client, None, None
        if client is None:
            return
        client.close(timeout=self.flush_timeout)
        logger.debug("Closed Sentry session")

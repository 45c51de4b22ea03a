"""Telemetry context for the Firezone client.

The context owns all reporting state: who the user is, which deployment the
client talks to, and the release metadata of the build. It is constructed once
at process start and passed to the places that report errors.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .config import TelemetryConfig, load_config
from .environment import Environment, EnvironmentResult, classify_endpoint
from .errors import AlreadyInitializedError, NotInitializedError
from .release import (
    distribution_tag,
    host_version,
    is_marketplace_distribution,
    platform_label,
    release_tag,
)
from .transport import SentryTransport, Transport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportingIdentity:
    """User attached to every captured event until replaced."""

    user_id: str
    account_slug: str

    def scope_data(self) -> dict[str, str]:
        return {"account_slug": self.account_slug}


class TelemetryContext:
    """Sole entry point through which the client reports errors.

    Every public method takes the same lock, so identity, environment and the
    transport session are always observed together. Once the environment is
    ``Environment.DISABLED`` it stays that way for the life of the context.

    Example:
        telemetry = TelemetryContext()
        telemetry.initialize()
        telemetry.set_user(firezone_id, account_slug)
        telemetry.set_environment_or_close(api_url)

        try:
            connect()
        except ConnectError as e:
            telemetry.capture(e)
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        config: Optional[TelemetryConfig] = None,
        *,
        platform: Optional[str] = None,
        version: Optional[Callable[[], Optional[str]]] = None,
        marketplace_probe: Optional[Callable[[], bool]] = None,
    ) -> None:
        """Create a telemetry context.

        Args:
            transport: Delivers events. Defaults to a ``SentryTransport``.
            config: Telemetry settings. Defaults to ``load_config()``.
            platform: ``sys.platform`` value used for the release label.
            version: Returns the host application's short version.
            marketplace_probe: Reports whether this is an App Store build.
        """
        self._config = config if config is not None else load_config()
        self._transport: Transport = (
            transport
            if transport is not None
            else SentryTransport(sample_rate=self._config.sample_rate)
        )
        self._platform = platform
        self._version = version or self._configured_version
        self._marketplace_probe = marketplace_probe or is_marketplace_distribution

        self._lock = threading.Lock()
        self._initialized = False
        self._session: Optional[Any] = None
        self._identity: Optional[ReportingIdentity] = None
        self._environment = Environment.ENTRYPOINT
        self._release_tag: Optional[str] = None
        self._distribution_tag: Optional[str] = None

    def _configured_version(self) -> Optional[str]:
        return self._config.app_version or host_version(self._config.app_distribution)

    @property
    def config(self) -> TelemetryConfig:
        """The telemetry configuration."""
        return self._config

    @property
    def initialized(self) -> bool:
        """Whether ``initialize`` has run."""
        with self._lock:
            return self._initialized

    @property
    def environment(self) -> Environment:
        """The current environment."""
        with self._lock:
            return self._environment

    @property
    def identity(self) -> Optional[ReportingIdentity]:
        """The current reporting identity, if any."""
        with self._lock:
            return self._identity

    @property
    def release_tag(self) -> str:
        """Release name computed during ``initialize``."""
        if self._release_tag is None:
            raise NotInitializedError("release tag is computed by initialize()")
        return self._release_tag

    @property
    def distribution_tag(self) -> str:
        """Distribution name computed during ``initialize``."""
        if self._distribution_tag is None:
            raise NotInitializedError("distribution tag is computed by initialize()")
        return self._distribution_tag

    def initialize(self, enable_hang_tracking: Optional[bool] = None) -> None:
        """Compute release metadata and open the transport session.

        Args:
            enable_hang_tracking: Passed to the transport. Defaults to the
                configured value.

        Raises:
            AlreadyInitializedError: If called more than once.
        """
        if enable_hang_tracking is None:
            enable_hang_tracking = self._config.enable_hang_tracking

        with self._lock:
            if self._initialized:
                raise AlreadyInitializedError("telemetry is already initialized")
            self._initialized = True

            self._release_tag = release_tag(platform_label(self._platform), self._version())
            self._distribution_tag = distribution_tag(self._marketplace_probe())

            if self._environment is Environment.DISABLED:
                logger.info("Telemetry disabled before initialization, not opening session")
                return

            if not self._config.reporting_allowed:
                logger.info("Telemetry opted out or no DSN configured, disabling")
                self._environment = Environment.DISABLED
                return

            try:
                self._session = self._transport.open(
                    self._config.dsn,
                    self._release_tag,
                    self._distribution_tag,
                    enable_hang_tracking,
                )
                self._transport.set_scope_environment(self._session, self._environment.value)
                if self._identity is not None:
                    self._transport.set_scope_user(
                        self._session,
                        self._identity.user_id,
                        self._identity.scope_data(),
                    )
            except Exception:
                logger.warning("Failed to open telemetry session, disabling", exc_info=True)
                self._disable()

    def set_user(self, user_id: str, account_slug: str) -> None:
        """Replace the identity attached to subsequent events.

        Safe to call before ``initialize``; the identity is applied once the
        session opens.
        """
        identity = ReportingIdentity(user_id=user_id, account_slug=account_slug)
        with self._lock:
            self._identity = identity
            if self._session is None:
                return
            try:
                self._transport.set_scope_user(
                    self._session, identity.user_id, identity.scope_data()
                )
            except Exception:
                logger.warning("Failed to set telemetry user", exc_info=True)

    def set_environment_or_close(self, endpoint: str) -> EnvironmentResult:
        """Set the environment from the portal endpoint, or disable telemetry.

        Unknown endpoints disable telemetry and close the session for good.

        Args:
            endpoint: The portal API URL the client connects to.

        Returns:
            Which branch was taken.
        """
        environment = classify_endpoint(endpoint)
        with self._lock:
            if self._environment is Environment.DISABLED:
                return EnvironmentResult.ALREADY_CLOSED

            if environment is Environment.DISABLED:
                logger.info("Unrecognized API endpoint, disabling telemetry")
                self._disable()
                return EnvironmentResult.CLOSED

            logger.debug("Telemetry environment set to %s", environment.value)
            self._environment = environment
            if self._session is not None:
                try:
                    self._transport.set_scope_environment(self._session, environment.value)
                except Exception:
                    logger.warning("Failed to set telemetry environment", exc_info=True)
            return EnvironmentResult(environment.value)

    def capture(self, error: BaseException) -> None:
        """Report an error under the current scope.

        Does nothing before ``initialize`` or once telemetry is disabled.
        Transport failures are logged and dropped.
        """
        with self._lock:
            if self._environment is Environment.DISABLED or self._session is None:
                return
            try:
                self._transport.submit(self._session, error)
            except Exception:
                logger.warning("Dropped telemetry event for %r", error, exc_info=True)

    def _disable(self) -> None:
        """Enter the terminal disabled state. Caller holds the lock."""
        self._environment = Environment.DISABLED
        session, self._session = self._session, None
        if session is None:
            return
        try:
            self._transport.close(session)
        except Exception:
            logger.warning("Failed to close telemetry session", exc_info=True)

"""Firezone Telemetry - error reporting for the Firezone client.

Errors are tagged with the signed-in device and account, the client release
and the deployment environment, and are sent through the Sentry SDK. Only the
production and staging portals report; any other portal endpoint disables
telemetry for the rest of the process.

Quick Start:
    from firezone_telemetry import TelemetryContext

    telemetry = TelemetryContext()
    telemetry.initialize(enable_hang_tracking=True)

    # After sign-in
    telemetry.set_user(firezone_id, account_slug)
    telemetry.set_environment_or_close("wss://api.firezone.dev")

    try:
        start_tunnel()
    except Exception as e:
        telemetry.capture(e)

Opt-out:
    export DO_NOT_TRACK=1
    # Or
    export FIREZONE_TELEMETRY_ENABLED=false
"""

from firezone_telemetry.config import (
    CONFIG_DIR,
    CONFIG_FILE,
    DEFAULTS,
    TelemetryConfig,
    load_config,
    save_config,
)
from firezone_telemetry.context import ReportingIdentity, TelemetryContext
from firezone_telemetry.decorators import capture_errors
from firezone_telemetry.environment import (
    PRODUCTION_PREFIX,
    STAGING_PREFIX,
    Environment,
    EnvironmentResult,
    classify_endpoint,
)
from firezone_telemetry.errors import (
    AlreadyInitializedError,
    NotInitializedError,
    TelemetryError,
)
from firezone_telemetry.privacy import create_before_send_filter, sanitize_path, scrub_dict
from firezone_telemetry.release import (
    distribution_tag,
    is_marketplace_distribution,
    platform_label,
    release_tag,
)
from firezone_telemetry.transport import SentryTransport, Transport

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Context
    "TelemetryContext",
    "ReportingIdentity",
    "capture_errors",
    # Environment
    "Environment",
    "EnvironmentResult",
    "classify_endpoint",
    "PRODUCTION_PREFIX",
    "STAGING_PREFIX",
    # Release
    "release_tag",
    "distribution_tag",
    "platform_label",
    "is_marketplace_distribution",
    # Transport
    "Transport",
    "SentryTransport",
    # Config
    "TelemetryConfig",
    "load_config",
    "save_config",
    "CONFIG_DIR",
    "CONFIG_FILE",
    "DEFAULTS",
    # Privacy
    "create_before_send_filter",
    "sanitize_path",
    "scrub_dict",
    # Errors
    "TelemetryError",
    "AlreadyInitializedError",
    "NotInitializedError",
]

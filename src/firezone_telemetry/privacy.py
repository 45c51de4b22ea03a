"""Privacy filtering for telemetry events.

Events leave the device only after passing through the ``before_send`` hook
built here. It removes usernames from stack trace paths, redacts values held
under sensitive keys and masks tokens embedded in messages.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Optional, Set

from sentry_sdk.types import Event, Hint

REDACTED = "[REDACTED]"

# Field names whose values are never sent
PII_DENYLIST: Set[str] = {
    "password",
    "secret",
    "token",
    "api_key",
    "authorization",
    "bearer",
    "cookie",
    "credential",
    "session_id",
    "email",
    "private_key",
    "preshared_key",
    "psk",
    "nonce",
}

SENSITIVE_PATTERNS = [
    # Email addresses
    re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"),
    # Bearer tokens
    re.compile(r"Bearer\s+[A-Za-z0-9._-]+"),
    # Portal tokens passed as query parameters
    re.compile(r"(?<=token=)[^&\s]+"),
    # WireGuard keys and other base64 secrets
    re.compile(r"[A-Za-z0-9+/]{40,}={0,2}"),
]

_HOME_PATTERNS = [
    (re.compile(r"/Users/[^/]+/"), "/Users/<user>/"),
    (re.compile(r"/home/[^/]+/"), "/home/<user>/"),
    (re.compile(r"/var/mobile/Containers/Data/Application/[^/]+/"),
     "/var/mobile/Containers/Data/Application/<app>/"),
    (re.compile(r"C:\\Users\\[^\\]+\\"), r"C:\\Users\\<user>\\"),
    (re.compile(r"C:/Users/[^/]+/"), "C:/Users/<user>/"),
]


def sanitize_path(path: str) -> str:
    """Remove the username from a file path.

    Examples:
        >>> sanitize_path("/Users/jamil/Library/Group Containers/app.py")
        '/Users/<user>/Library/Group Containers/app.py'
        >>> sanitize_path("/home/alice/firezone/main.py")
        '/home/<user>/firezone/main.py'
    """
    for pattern, replacement in _HOME_PATTERNS:
        path = pattern.sub(replacement, path)
    return path


def is_sensitive_key(key: str) -> bool:
    """Check if a key name indicates sensitive data."""
    key_lower = key.lower().replace("-", "_")
    return any(denied in key_lower for denied in PII_DENYLIST)


def scrub_string(value: str) -> str:
    """Replace sensitive patterns in a string."""
    for pattern in SENSITIVE_PATTERNS:
        value = pattern.sub(REDACTED, value)
    return value


def scrub_dict(data: Dict[str, Any], scrub_values: bool = False) -> Dict[str, Any]:
    """Return a copy of ``data`` with sensitive entries redacted.

    Args:
        data: The dictionary to scrub. Nested containers are scrubbed too.
        scrub_values: Whether to also scan string values for sensitive patterns.
    """
    result: Dict[str, Any] = {}
    for key, value in data.items():
        if is_sensitive_key(str(key)):
            result[key] = REDACTED
        else:
            result[key] = _scrub_value(value, scrub_values)
    return result


def scrub_list(data: List[Any], scrub_values: bool = False) -> List[Any]:
    """Return a copy of ``data`` with sensitive entries redacted."""
    return [_scrub_value(item, scrub_values) for item in data]


def _scrub_value(value: Any, scrub_values: bool) -> Any:
    if isinstance(value, dict):
        return scrub_dict(value, scrub_values=scrub_values)
    if isinstance(value, list):
        return scrub_list(value, scrub_values=scrub_values)
    if isinstance(value, str) and scrub_values:
        return scrub_string(value)
    return value


def scrub_exception_data(exception_data: Dict[str, Any]) -> None:
    """Scrub an event's ``exception`` payload in place."""
    for value in exception_data.get("values", []):
        for frame in value.get("stacktrace", {}).get("frames", []):
            for key in ("filename", "abs_path"):
                if isinstance(frame.get(key), str):
                    frame[key] = sanitize_path(frame[key])
            if isinstance(frame.get("vars"), dict):
                frame["vars"] = scrub_dict(frame["vars"], scrub_values=True)

        if isinstance(value.get("value"), str):
            value["value"] = scrub_string(value["value"])


def create_before_send_filter(
    environment: Optional[Callable[[], str]] = None,
) -> Callable[[Event, Hint], Optional[Event]]:
    """Create a ``before_send`` callback for a Sentry client.

    Args:
        environment: Returns the environment to stamp on each event. The
            environment of a session changes after the client is created,
            so it is read per event.

    Returns:
        A function suitable for Sentry's ``before_send`` option.
    """

    def before_send(event: Event, hint: Hint) -> Optional[Event]:
        if environment is not None:
            event["environment"] = environment()

        if "exception" in event:
            scrub_exception_data(event["exception"])

        breadcrumbs = event.get("breadcrumbs")
        if isinstance(breadcrumbs, dict):
            for crumb in breadcrumbs.get("values", []):
                if isinstance(crumb.get("message"), str):
                    crumb["message"] = scrub_string(crumb["message"])
                if isinstance(crumb.get("data"), dict):
                    crumb["data"] = scrub_dict(crumb["data"], scrub_values=True)

        if isinstance(event.get("extra"), dict):
            event["extra"] = scrub_dict(event["extra"], scrub_values=True)

        if isinstance(event.get("contexts"), dict):
            event["contexts"] = scrub_dict(event["contexts"])

        return event

    return before_send

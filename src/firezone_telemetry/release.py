"""Release and distribution metadata for telemetry sessions.

The release tag identifies the client build (``macos-client@1.4.2``) and the
distribution tag separates App Store builds from standalone ones. Both are
computed once when the telemetry context initializes.
"""

from __future__ import annotations

import sys
from importlib import metadata
from pathlib import Path
from typing import Optional

UNKNOWN_VERSION = "unknown"

APPSTORE = "appstore"
STANDALONE = "standalone"

_PLATFORM_LABELS = {
    "ios": "ios-client",
    "darwin": "macos-client",
}


def is_running_from_executable() -> bool:
    """Check if running from a frozen/bundled executable.

    Returns:
        True if running from PyInstaller, py2app, etc.
    """
    return bool(getattr(sys, "frozen", False) or hasattr(sys, "_MEIPASS"))


def platform_label(system: Optional[str] = None) -> str:
    """Return the client label for a platform.

    Args:
        system: A ``sys.platform`` value. Defaults to the host platform.

    Returns:
        ``"ios-client"``, ``"macos-client"`` or ``"<platform>-client"``.
    """
    system = system or sys.platform
    return _PLATFORM_LABELS.get(system, f"{system}-client")


def release_tag(label: str, version: Optional[str]) -> str:
    """Build the release name reported with every event.

    Examples:
        >>> release_tag("ios-client", "1.2.3")
        'ios-client@1.2.3'
        >>> release_tag("macos-client", None)
        'macos-client@unknown'
    """
    return f"{label}@{version or UNKNOWN_VERSION}"


def host_version(distribution: Optional[str]) -> Optional[str]:
    """Look up the installed version of the host application.

    Args:
        distribution: Name of the installed distribution, if any.

    Returns:
        The version string, or None when it cannot be determined.
    """
    if not distribution:
        return None
    try:
        return metadata.version(distribution)
    except metadata.PackageNotFoundError:
        return None


def app_bundle_root(executable: Optional[str] = None) -> Optional[Path]:
    """Return the ``Contents`` directory of the enclosing macOS app bundle."""
    path = Path(executable or sys.executable).resolve()
    for parent in path.parents:
        if parent.name == "Contents" and parent.parent.suffix == ".app":
            return parent
    return None


def is_marketplace_distribution(executable: Optional[str] = None) -> bool:
    """Check whether this build was installed from the App Store.

    App Store builds ship a receipt inside the bundle.
    """
    if not is_running_from_executable() and executable is None:
        return False
    contents = app_bundle_root(executable)
    if contents is None:
        return False
    return (contents / "_MASReceipt" / "receipt").is_file()


def distribution_tag(is_marketplace: bool) -> str:
    """Return ``"appstore"`` for marketplace builds, else ``"standalone"``."""
    return APPSTORE if is_marketplace else STANDALONE

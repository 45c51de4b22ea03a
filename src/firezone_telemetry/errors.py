"""Exceptions raised by the telemetry context."""

from __future__ import annotations


class TelemetryError(Exception):
    """Base class for telemetry errors."""


class AlreadyInitializedError(TelemetryError):
    """Raised when ``initialize`` is called on an initialized context."""


class NotInitializedError(TelemetryError):
    """Raised when reading values that only exist after ``initialize``."""

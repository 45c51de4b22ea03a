"""Convenience decorators for reporting errors through a telemetry context."""

from __future__ import annotations

import functools
from typing import Any, Callable, TypeVar

from .context import TelemetryContext

F = TypeVar("F", bound=Callable[..., Any])


def capture_errors(
    telemetry: TelemetryContext,
    reraise: bool = True,
) -> Callable[[F], F]:
    """Decorator to report exceptions raised by the wrapped function.

    Args:
        telemetry: The context errors are reported through.
        reraise: Whether to re-raise the exception after capturing.

    Returns:
        Decorated function.

    Example:
        @capture_errors(telemetry)
        def start_tunnel(token):
            ...
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                telemetry.capture(e)
                if reraise:
                    raise
                return None

        return wrapper  # type: ignore

    return decorator

"""OpenTelemetry integration for the pub/sub REST SDK.

Provides tracing and structured logging for observability.
"""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, ParamSpec, TypeVar

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

if TYPE_CHECKING:
    from collections.abc import Generator

P = ParamSpec("P")
T = TypeVar("T")

SDK_NAME = "pubsub-rest-sdk"
SDK_VERSION = "0.1.0"

# Module-level tracer and logger
_tracer: trace.Tracer | None = None
_logger: structlog.BoundLogger | None = None


def get_tracer() -> trace.Tracer:
    """Get or create the SDK tracer."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(SDK_NAME, SDK_VERSION)
    return _tracer


def get_logger() -> structlog.BoundLogger:
    """Get or create the SDK logger."""
    global _logger
    if _logger is None:
        _logger = structlog.get_logger(SDK_NAME)
    return _logger


@contextmanager
def trace_operation(
    name: str,
    *,
    attributes: dict[str, Any] | None = None,
) -> Generator[trace.Span, None, None]:
    """Context manager for tracing an operation.

    Args:
        name: Name of the operation.
        attributes: Optional span attributes.

    Yields:
        The active span.
    """
    tracer = get_tracer()
    with tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                span.set_attribute(key, value)
        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise


def traced_async(
    name: str | None = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorator to trace an async function.

    Args:
        name: Optional span name (defaults to function name).

    Returns:
        Decorated async function.
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        span_name = name or func.__name__

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            with trace_operation(span_name):
                return await func(*args, **kwargs)

        return wrapper

    return decorator

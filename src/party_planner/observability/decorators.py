"""OpenTelemetry tracing decorators."""

import asyncio
import functools
from collections.abc import Callable
from typing import Any, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode

from party_planner.exceptions import PartyPlannerError

F = TypeVar("F", bound=Callable[..., Any])


def _record_failure(span: Span, error: Exception) -> None:
    """Annotate a span with a raised exception.

    Domain errors (locked party, unknown share code, ...) are expected outcomes
    of user input: they are tagged with their error code but leave the span
    status unset. Anything else marks the span as failed.
    """
    span.set_attribute("success", False)
    span.set_attribute("error.type", type(error).__name__)

    if isinstance(error, PartyPlannerError) and error.status_code < 500:
        span.set_attribute("error.code", error.error_code)
        return

    span.set_attribute("error.message", str(error))
    span.record_exception(error)
    span.set_status(Status(StatusCode.ERROR, str(error)))


def traced(span_name: str | None = None, service_name: str = "party-planner") -> Callable[[F], F]:
    """Decorator to add OpenTelemetry tracing to a function.

    Creates a new span for the decorated function. Both sync and async
    functions are supported.

    Args:
        span_name: Name for the span (defaults to function name if not provided)
        service_name: Service name for span attributes

    Returns:
        Decorated function with tracing

    Example:
        @traced("party.add_dish")
        async def add_dish(self, share_code: str, dish_id: str) -> PartyDish:
            ...
    """

    def decorator(func: F) -> F:
        name = span_name or func.__name__
        tracer = trace.get_tracer(service_name)

        def start_span() -> Any:
            # Failures are recorded by _record_failure, not by the span itself
            return tracer.start_as_current_span(
                name, record_exception=False, set_status_on_exception=False
            )

        def annotate(span: Span) -> None:
            span.set_attribute("service.name", service_name)
            if span_name:
                span.set_attribute("function.name", func.__name__)

        if asyncio.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with start_span() as span:
                    annotate(span)
                    try:
                        result = await func(*args, **kwargs)
                    except Exception as e:
                        _record_failure(span, e)
                        raise
                    span.set_attribute("success", True)
                    return result

            return async_wrapper  # type: ignore

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with start_span() as span:
                annotate(span)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    _record_failure(span, e)
                    raise
                span.set_attribute("success", True)
                return result

        return sync_wrapper  # type: ignore

    return decorator

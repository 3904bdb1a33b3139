"""Tracing helpers: the traced decorator and current-span utilities."""

import inspect
from collections.abc import Callable
from functools import wraps
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

# Only these kwarg names are copied onto spans; cached values and fetchers never are.
_SAFE_SPAN_ATTR_KEYS = frozenset({
    "resource", "user_id", "school_id", "tenant_id", "class_id", "student_id",
    "force_refresh", "tag", "tags", "path", "job", "entity", "operation", "action",
})


def _set_safe_span_attrs(span: trace.Span, kwargs: dict[str, Any]) -> None:
    for key, value in kwargs.items():
        if key.lower() in _SAFE_SPAN_ATTR_KEYS:
            span.set_attribute(f"arg.{key}", str(value))


def _finish(span: trace.Span, error: Exception | None) -> None:
    if error is None:
        span.set_status(Status(StatusCode.OK))
    else:
        span.set_status(Status(StatusCode.ERROR, str(error)))
        span.record_exception(error)


def traced(
    operation_name: str | None = None,
    attributes: dict[str, str | int | float | bool] | None = None,
) -> Callable:
    """Decorator to create a span around a function (sync or async).

    Args:
        operation_name: Span name (defaults to module.qualname).
        attributes: Optional static attributes set on every span.
    """

    def decorator(func: Callable) -> Callable:
        tracer = trace.get_tracer(func.__module__)
        span_name = operation_name or f"{func.__module__}.{func.__qualname__}"

        def start() -> Any:
            return tracer.start_as_current_span(
                span_name, record_exception=False, set_status_on_exception=False
            )

        def annotate(span: trace.Span, kwargs: dict[str, Any]) -> None:
            for key, value in (attributes or {}).items():
                span.set_attribute(key, value)
            _set_safe_span_attrs(span, kwargs)

        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            with start() as span:
                annotate(span, kwargs)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _finish(span, e)
                    raise
                _finish(span, None)
                return result

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with start() as span:
                annotate(span, kwargs)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    _finish(span, e)
                    raise
                _finish(span, None)
                return result

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


def add_span_attributes(**attributes: str | int | float | bool) -> None:
    """Add attributes to the current span."""
    span = trace.get_current_span()
    if span and span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(key, value)


def get_trace_id() -> str | None:
    """Return the current trace ID as 32-char hex, or None."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        return format(ctx.trace_id, "032x")
    return None

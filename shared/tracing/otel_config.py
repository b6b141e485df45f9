"""OpenTelemetry configuration for distributed tracing.

Provides trace export over OTLP/HTTP and a decorator for manual spans.
"""

import functools
import inspect
from typing import Any, Callable, Optional, TypeVar

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.trace import Status, StatusCode

F = TypeVar("F", bound=Callable[..., Any])


def configure_tracing(
    service_name: str,
    service_version: str = "1.0.0",
    otlp_endpoint: Optional[str] = None,
    sampling_rate: float = 0.1,
) -> TracerProvider:
    """Configure OpenTelemetry tracing for the service.

    Args:
        service_name: Name of the service (e.g., "invigilator-portal")
        service_version: Version reported on every span
        otlp_endpoint: OTLP/HTTP traces endpoint (exporter default when None)
        sampling_rate: Sampling rate (0.0 to 1.0)

    Returns:
        Configured TracerProvider
    """
    # Create resource with service information
    resource = Resource(
        attributes={
            "service.name": service_name,
            "service.namespace": "invigilator-portal",
            "service.version": service_version,
        }
    )

    provider = TracerProvider(
        resource=resource,
        sampler=ParentBased(TraceIdRatioBased(sampling_rate)),
    )

    exporter = OTLPSpanExporter(endpoint=otlp_endpoint) if otlp_endpoint else OTLPSpanExporter()
    provider.add_span_processor(BatchSpanProcessor(exporter))

    # Set as global tracer provider
    trace.set_tracer_provider(provider)

    return provider


def get_tracer(name: str) -> trace.Tracer:
    """Get a tracer instance.

    Args:
        name: Tracer name (typically __name__)

    Returns:
        Tracer instance
    """
    return trace.get_tracer(name)


def trace_function(span_name: Optional[str] = None) -> Callable[[F], F]:
    """Decorator to automatically trace a function.

    Without a configured provider the spans are no-ops.

    Args:
        span_name: Optional custom span name (defaults to function name)

    Returns:
        Decorated function with automatic tracing
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            name = span_name or func.__name__
            tracer = get_tracer(func.__module__)

            with tracer.start_as_current_span(name) as span:
                try:
                    span.set_attribute("function.name", func.__name__)
                    span.set_attribute("function.module", func.__module__)

                    result = func(*args, **kwargs)

                    span.set_status(Status(StatusCode.OK))
                    return result
                except Exception as exc:
                    span.record_exception(exc)
                    span.set_status(Status(StatusCode.ERROR, str(exc)))
                    raise

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            name = span_name or func.__name__
            tracer = get_tracer(func.__module__)

            with tracer.start_as_current_span(name) as span:
                try:
                    span.set_attribute("function.name", func.__name__)
                    span.set_attribute("function.module", func.__module__)

                    result = await func(*args, **kwargs)

                    span.set_status(Status(StatusCode.OK))
                    return result
                except Exception as exc:
                    span.record_exception(exc)
                    span.set_status(Status(StatusCode.ERROR, str(exc)))
                    raise

        # Return appropriate wrapper based on function type
        if inspect.iscoroutinefunction(func):
            return async_wrapper  # type: ignore
        return sync_wrapper  # type: ignore

    return decorator

"""OpenTelemetry tracing helpers for the focus console workspace.

The core transformations are pure functions; tracing is attached from the
outside by wrapping them, so the functions themselves never touch a tracer.

Key concepts:
- Span          : one named, timed unit of work (one classification, one import)
- TracerProvider: configures how spans are created and exported
- Tracer        : created from the provider; used to start new spans
- Exporter      : receives completed spans and forwards them to a backend

Usage with an OTLP collector:

    from focus_console.tracing import configure_tracing, get_tracer, traced_operation

    configure_tracing(endpoint="http://localhost:4318/v1/traces")
    tracer = get_tracer("focus-console.compendium")
    chunk = traced_operation(chunk_text, tracer, "compendium.chunk")
    chunks = chunk(raw_text)

Usage without a backend (development / testing):

    configure_tracing()   # uses ConsoleSpanExporter by default
"""
from __future__ import annotations

from collections.abc import Sized
from typing import Callable, TypeVar

from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor, SpanExporter

from .settings import TracingSettings

ATTR_INPUT_LENGTH = "input.length"
ATTR_OUTPUT_COUNT = "output.count"
ATTR_OPERATION = "focus.operation"

T = TypeVar("T")

_provider: TracerProvider | None = None


def configure_tracing(
    endpoint: str | None = None,
    service_name: str = "focus-console",
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """Create and register a global TracerProvider.

    Args:
        endpoint: OTLP HTTP endpoint URL. When *None* and no *exporter* is
            given, spans are printed to stdout via ``ConsoleSpanExporter``.
        service_name: Label identifying this application in the backend.
        exporter: Pre-built exporter (e.g. ``InMemorySpanExporter`` in tests).
            When provided, *endpoint* is ignored.

    Returns:
        The configured provider, also installed as the global OTel provider.
    """
    global _provider

    resource = Resource(attributes={SERVICE_NAME: service_name})
    provider = TracerProvider(resource=resource)

    if exporter is not None:
        chosen_exporter: SpanExporter = exporter
    elif endpoint is not None:
        try:
            from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
                OTLPSpanExporter,
            )
        except ImportError as exc:  # pragma: no cover
            raise ImportError(
                "opentelemetry-exporter-otlp-proto-http is required to export "
                "traces to an OTLP endpoint.  Install it with:\n"
                "  pip install 'focus-console[otlp]'"
            ) from exc
        chosen_exporter = OTLPSpanExporter(endpoint=endpoint)
    else:
        chosen_exporter = ConsoleSpanExporter()

    provider.add_span_processor(SimpleSpanProcessor(chosen_exporter))
    trace.set_tracer_provider(provider)
    _provider = provider
    return provider


def configure_from_settings(settings: TracingSettings) -> TracerProvider:
    return configure_tracing(endpoint=settings.endpoint, service_name=settings.service_name)


def get_tracer(name: str) -> trace.Tracer:
    """Return a tracer from the most recently configured provider.

    Falls back to the global (no-op by default) provider when
    :func:`configure_tracing` has not been called.
    """
    if _provider is not None:
        return _provider.get_tracer(name)
    return trace.get_tracer(name)


def traced_operation(fn: Callable[..., T], tracer: trace.Tracer, span_name: str) -> Callable[..., T]:
    """Wrap a text transformation so every call is recorded as a span.

    The span records:

    - ``focus.operation``: *span_name*
    - ``input.length``: length of the first positional argument when it is a string
    - ``output.count``: number of items returned, for sized non-string results
    - status OK on success, ERROR plus the recorded exception on failure

    Args:
        fn: Callable whose first argument is the input text.
        tracer: Tracer used for span creation.
        span_name: Name of the span and value of ``focus.operation``.

    Returns:
        A callable with identical behaviour plus tracing.
    """

    def _wrapped(*args, **kwargs) -> T:
        with tracer.start_as_current_span(span_name) as span:
            span.set_attribute(ATTR_OPERATION, span_name)
            if args and isinstance(args[0], str):
                span.set_attribute(ATTR_INPUT_LENGTH, len(args[0]))
            try:
                result = fn(*args, **kwargs)
            except Exception as exc:
                span.set_status(trace.StatusCode.ERROR, str(exc))
                span.record_exception(exc)
                raise
            if isinstance(result, Sized) and not isinstance(result, str):
                span.set_attribute(ATTR_OUTPUT_COUNT, len(result))
            span.set_status(trace.StatusCode.OK)
            return result

    return _wrapped

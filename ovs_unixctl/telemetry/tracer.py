"""
OpenTelemetry tracing

Every unixctl request runs inside a span. Until setup_tracer is called the
OpenTelemetry API hands out no-op tracers, so tracing costs nothing unless
it is configured.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ALWAYS_ON

logger = logging.getLogger(__name__)

INSTRUMENTATION_NAME = "ovs_unixctl"

_tracer: Optional[trace.Tracer] = None


def setup_tracer(service_name: str,
                 otlp_endpoint: Optional[str] = None,
                 span_processors: Optional[Iterable[SpanProcessor]] = None,
                 set_global: bool = True) -> trace.Tracer:
    """Configure OpenTelemetry tracing

    Args:
        service_name: Service name reported with every span
        otlp_endpoint: OTLP receiver address, spans are exported there when set
        span_processors: Additional span processors (e.g. in-memory exporters in tests)
        set_global: Also install the provider as the global tracer provider

    Returns:
        Tracer used for unixctl spans from now on
    """
    global _tracer

    provider = TracerProvider(
        sampler=ALWAYS_ON,
        resource=Resource.create({"service.name": service_name}),
    )

    if otlp_endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))

    for processor in span_processors or []:
        provider.add_span_processor(processor)

    if set_global:
        trace.set_tracer_provider(provider)

    _tracer = provider.get_tracer(INSTRUMENTATION_NAME)

    logger.info(f"OpenTelemetry tracing configured, service name: {service_name}, OTLP endpoint: {otlp_endpoint}")

    return _tracer


def get_tracer() -> trace.Tracer:
    """Tracer configured by setup_tracer, or the global one."""
    if _tracer is not None:
        return _tracer
    return trace.get_tracer(INSTRUMENTATION_NAME)


def create_span(name: str, attributes: Dict[str, Any] = None):
    """Start a client span and make it current

    Exceptions escaping the ``with`` block are recorded on the span and set
    its status to error.

    Args:
        name: Span name
        attributes: Span attributes

    Returns:
        Context manager yielding the span
    """
    return get_tracer().start_as_current_span(
        name,
        attributes=attributes or {},
        kind=trace.SpanKind.CLIENT,
    )

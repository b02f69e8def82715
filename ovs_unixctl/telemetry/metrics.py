"""
OpenTelemetry metrics collection

Counters and latency histograms for unixctl requests. Instruments are created
lazily and cached by name.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from opentelemetry import metrics
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

logger = logging.getLogger(__name__)

INSTRUMENTATION_NAME = "ovs_unixctl"

_meter: Optional[metrics.Meter] = None
_counters = {}
_histograms = {}


def setup_metrics(service_name: str,
                  otlp_endpoint: Optional[str] = None,
                  export_interval_ms: int = 5000,
                  metric_readers: Optional[Iterable[MetricReader]] = None,
                  set_global: bool = True) -> metrics.Meter:
    """Configure OpenTelemetry metrics collection

    Args:
        service_name: Service name
        otlp_endpoint: OTLP receiver address, metrics are exported there when set
        export_interval_ms: Metrics export interval in milliseconds
        metric_readers: Additional readers (e.g. InMemoryMetricReader in tests)
        set_global: Also install the provider as the global meter provider

    Returns:
        Meter used for unixctl instruments from now on
    """
    global _meter

    readers = list(metric_readers or [])
    if otlp_endpoint:
        readers.append(PeriodicExportingMetricReader(
            OTLPMetricExporter(endpoint=otlp_endpoint),
            export_interval_millis=export_interval_ms,
        ))

    provider = MeterProvider(
        metric_readers=readers,
        resource=Resource.create({"service.name": service_name}),
    )

    if set_global:
        metrics.set_meter_provider(provider)

    _meter = provider.get_meter(INSTRUMENTATION_NAME)
    # Instruments bound to a previous meter would keep reporting there
    _counters.clear()
    _histograms.clear()

    logger.info(f"OpenTelemetry metrics configured, service name: {service_name}, OTLP endpoint: {otlp_endpoint}")

    return _meter


def get_meter() -> metrics.Meter:
    if _meter is not None:
        return _meter
    return metrics.get_meter(INSTRUMENTATION_NAME)


def get_counter(name: str, description: str, unit: str = "1"):
    """Get or create counter

    Args:
        name: Counter name
        description: Counter description
        unit: Counter unit (default "1", representing count)
    """
    if name not in _counters:
        _counters[name] = get_meter().create_counter(
            name=name,
            description=description,
            unit=unit
        )
    return _counters[name]


def get_histogram(name: str, description: str, unit: str = "ms"):
    """Get or create histogram (default unit: milliseconds)"""
    if name not in _histograms:
        _histograms[name] = get_meter().create_histogram(
            name=name,
            description=description,
            unit=unit
        )
    return _histograms[name]


def increment_counter(name: str, amount: int = 1, attributes: Dict[str, Any] = None):
    """Increment counter value

    Args:
        name: Counter name
        amount: Amount to increment
        attributes: Attribute labels
    """
    counter = get_counter(name, f"Counter for {name}")
    counter.add(amount, attributes or {})


def record_latency(name: str, value_ms: float, attributes: Dict[str, Any] = None):
    """Record latency histogram

    Args:
        name: Histogram name
        value_ms: Latency value in milliseconds
        attributes: Attribute labels
    """
    histogram = get_histogram(name, f"Latency histogram for {name}")
    histogram.record(value_ms, attributes or {})

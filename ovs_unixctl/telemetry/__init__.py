"""
OpenTelemetry Integration Module

Provides tracing and metrics for unixctl requests:
- tracer: span creation around each request
- metrics: request, success, error counters and latency histograms
"""

from .tracer import (
    setup_tracer,
    get_tracer,
    create_span,
)
from .metrics import (
    setup_metrics,
    increment_counter,
    record_latency,
)

__all__ = [
    "setup_tracer",
    "get_tracer",
    "create_span",
    "setup_metrics",
    "increment_counter",
    "record_latency",
]

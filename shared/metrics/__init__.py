"""Metrics module using Prometheus."""

from .prometheus_metrics import (
    HTTPMetrics,
    PortalMetrics,
    setup_metrics,
    get_metrics_handler,
)

__all__ = [
    "HTTPMetrics",
    "PortalMetrics",
    "setup_metrics",
    "get_metrics_handler",
]

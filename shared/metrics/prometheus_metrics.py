"""Prometheus metrics definitions and helpers.

Provides HTTP metrics for the API layer and domain metrics for the portal.
"""

from functools import lru_cache
from typing import Callable

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    REGISTRY,
    CollectorRegistry,
)


class HTTPMetrics:
    """Request-level metrics recorded by the logging middleware."""

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Initialize HTTP metrics.

        Args:
            registry: Prometheus registry to use
        """
        self.requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status"],
            registry=registry,
        )

        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=registry,
        )

        self.requests_in_progress = Gauge(
            "http_requests_in_progress",
            "HTTP requests currently in progress",
            ["method"],
            registry=registry,
        )


class PortalMetrics:
    """Registration and review metrics."""

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Initialize portal metrics.

        Args:
            registry: Prometheus registry to use
        """
        self.signups = Counter(
            "portal_signups_total",
            "Candidate accounts created",
            registry=registry,
        )

        # outcome: success | failure
        self.logins = Counter(
            "portal_logins_total",
            "Login attempts",
            ["outcome"],
            registry=registry,
        )

        self.applications_submitted = Counter(
            "portal_applications_submitted_total",
            "Applications submitted by candidates",
            registry=registry,
        )

        self.status_changes = Counter(
            "portal_candidate_status_changes_total",
            "Review status changes",
            ["status"],
            registry=registry,
        )

        # audience: candidate | admin
        self.documents_generated = Counter(
            "portal_documents_generated_total",
            "PDF bundles generated",
            ["audience", "outcome"],
            registry=registry,
        )

        self.document_duration = Histogram(
            "portal_document_generation_seconds",
            "Time spent rendering a PDF bundle",
            ["audience"],
            buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
            registry=registry,
        )

        self.contact_messages = Counter(
            "portal_contact_messages_total",
            "Messages received from the contact page",
            registry=registry,
        )


@lru_cache()
def setup_metrics() -> tuple[HTTPMetrics, PortalMetrics]:
    """Setup and return metric instances.

    Cached so collectors are registered with the default registry once.

    Returns:
        Tuple of (HTTPMetrics, PortalMetrics)
    """
    return HTTPMetrics(), PortalMetrics()


def get_metrics_handler() -> Callable[[], bytes]:
    """Get metrics handler for HTTP endpoint.

    Returns:
        Function that generates Prometheus metrics output
    """

    def metrics_handler() -> bytes:
        return generate_latest(REGISTRY)

    return metrics_handler

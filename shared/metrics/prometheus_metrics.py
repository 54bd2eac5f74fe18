"""Prometheus metrics definitions and helpers.

Provides the metric definitions shared by the catalog web application.
"""

from functools import lru_cache

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    REGISTRY,
    CollectorRegistry,
)


class HTTPMetrics:
    """Request level metrics recorded by the logging middleware."""

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
            ["method", "endpoint"],
            registry=registry,
        )


class CatalogMetrics:
    """Catalog domain metrics."""

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Initialize catalog metrics.

        Args:
            registry: Prometheus registry to use
        """
        # Inserts, replacements and deletions per collection
        self.documents_written = Counter(
            "catalog_documents_written_total",
            "Total number of catalog documents written",
            ["collection", "operation"],
            registry=registry,
        )

        # Submitted forms that were re-rendered with errors
        self.validation_failures = Counter(
            "catalog_validation_failures_total",
            "Total number of form submissions rejected by validation",
            ["form"],
            registry=registry,
        )

        # Deletions refused because dependents still exist
        self.deletions_blocked = Counter(
            "catalog_deletions_blocked_total",
            "Total number of deletions refused because of dependents",
            ["collection"],
            registry=registry,
        )

        self.fanout_duration = Histogram(
            "catalog_fanout_duration_seconds",
            "Time spent joining concurrent document store reads",
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
            registry=registry,
        )

        self.fanout_failures = Counter(
            "catalog_fanout_failures_total",
            "Number of fan-out reads that ended with an error",
            ["task"],
            registry=registry,
        )


@lru_cache()
def get_http_metrics() -> HTTPMetrics:
    """Return the process wide HTTP metrics."""
    return HTTPMetrics()


@lru_cache()
def get_catalog_metrics() -> CatalogMetrics:
    """Return the process wide catalog metrics."""
    return CatalogMetrics()

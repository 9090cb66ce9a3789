# -*- coding: utf-8 -*-
"""Rendezvous Metrics - Prometheus instrumentation for barrier rounds."""

import logging
from typing import Dict, Any, Optional

from prometheus_client import (
    Counter, Gauge, Histogram, CollectorRegistry, generate_latest
)

logger = logging.getLogger(__name__)


class BarrierMetrics:
    """Barrier metrics on a dedicated Prometheus registry."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry if registry is not None else CollectorRegistry()

        self.entries = Counter(
            'rendezvous_barrier_entries_total',
            'Barrier rounds completed, by role',
            ['role'],
            registry=self.registry
        )

        self.failures = Counter(
            'rendezvous_barrier_failures_total',
            'Barrier rounds that ended in a coordination failure',
            ['error_type'],
            registry=self.registry
        )

        self.wait_time = Histogram(
            'rendezvous_barrier_wait_seconds',
            'Time spent inside enter()',
            ['role'],
            buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 300.0),
            registry=self.registry
        )

        self.wakeups = Counter(
            'rendezvous_barrier_wakeups_total',
            'Wait loop wake-ups, by what woke the loop',
            ['source'],
            registry=self.registry
        )

        self.waiting = Gauge(
            'rendezvous_barriers_waiting',
            'Number of members currently inside enter()',
            registry=self.registry
        )

    def record_entry(self, role: str, duration: Optional[float] = None):
        """Record a completed barrier round."""
        self.entries.labels(role=role).inc()
        if duration is not None:
            self.wait_time.labels(role=role).observe(duration)

    def record_failure(self, error_type: str = "unknown"):
        """Record a failed barrier round."""
        self.failures.labels(error_type=error_type).inc()

    def record_wakeup(self, source: str):
        """Record one pass through the wait loop."""
        self.wakeups.labels(source=source).inc()

    def waiter_started(self):
        self.waiting.inc()

    def waiter_finished(self):
        self.waiting.dec()

    def get_metrics_text(self) -> str:
        """Get metrics in Prometheus text format."""
        return generate_latest(self.registry).decode('utf-8')

    def get_metrics_dict(self) -> Dict[str, Any]:
        """Get current sample values keyed by sample name and labels."""
        metrics_dict: Dict[str, Any] = {}
        for metric in self.registry.collect():
            for sample in metric.samples:
                if sample.name.endswith('_bucket') or sample.name.endswith('_created'):
                    continue
                labels = ','.join(f"{k}={v}" for k, v in sorted(sample.labels.items()))
                key = f"{sample.name}{{{labels}}}" if labels else sample.name
                metrics_dict[key] = sample.value
        return metrics_dict


# Global metrics instance
_metrics_instance: Optional[BarrierMetrics] = None


def get_metrics() -> BarrierMetrics:
    """Get the global metrics instance."""
    global _metrics_instance
    if _metrics_instance is None:
        _metrics_instance = BarrierMetrics()
    return _metrics_instance


def start_metrics_server(port: int = 9090, host: str = "0.0.0.0",
                         metrics: Optional[BarrierMetrics] = None):
    """Start Prometheus metrics HTTP server, by default for the global registry."""
    from prometheus_client import start_http_server
    registry = (metrics or get_metrics()).registry
    start_http_server(port, addr=host, registry=registry)
    logger.info(f"Started metrics server on http://{host}:{port}/metrics")

"""Prometheus metrics for core write transactions and escalations."""

from prometheus_client import Counter, Histogram

# Transaction metrics
write_latency_ms = Histogram(
    "care_write_latency_ms",
    "Write transaction latency in milliseconds",
    ["operation", "outcome"],
    buckets=[1, 5, 10, 25, 50, 100, 250, 500, 1000, 2500],
)

write_rollbacks_total = Counter(
    "care_write_rollbacks_total",
    "Total rolled-back write transactions",
    ["operation", "reason"],
)

# Escalation metrics
escalation_requests_total = Counter(
    "care_escalation_requests_total",
    "Total escalation requests by outcome",
    ["outcome"],
)


class CoreMetrics:
    """Interface for core metrics; the default records nothing."""

    def record_latency(self, operation: str, outcome: str, latency_ms: float) -> None:
        """Record write transaction latency."""
        pass

    def inc_rollback(self, operation: str, reason: str) -> None:
        """Increment rollback counter."""
        pass

    def inc_escalation(self, outcome: str) -> None:
        """Increment escalation request counter."""
        pass


class PrometheusCoreMetrics(CoreMetrics):
    """Prometheus-based core metrics implementation."""

    def record_latency(self, operation: str, outcome: str, latency_ms: float) -> None:
        write_latency_ms.labels(operation=operation, outcome=outcome).observe(latency_ms)

    def inc_rollback(self, operation: str, reason: str) -> None:
        write_rollbacks_total.labels(operation=operation, reason=reason).inc()

    def inc_escalation(self, outcome: str) -> None:
        escalation_requests_total.labels(outcome=outcome).inc()

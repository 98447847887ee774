"""Prometheus metrics for outbound calls and accepted plans."""

from prometheus_client import Counter, Histogram

# Upstream call metrics (AI engine, timetable, LLM)
upstream_latency_ms = Histogram(
    "upstream_latency_ms",
    "Outbound call latency in milliseconds",
    ["service", "operation", "outcome"],
    buckets=[10, 50, 100, 250, 500, 1000, 2500, 5000, 15000, 30000],
)

upstream_errors_total = Counter(
    "upstream_errors_total",
    "Total outbound call errors",
    ["service", "reason"],
)

tour_plans_accepted_total = Counter(
    "tour_plans_accepted_total",
    "Total tour plans accepted and saved as trips",
)


class PrometheusUpstreamMetrics:
    """Prometheus-based upstream metrics implementation."""

    def record_latency(self, service: str, operation: str, outcome: str, latency_ms: float) -> None:
        """Record outbound call latency."""
        upstream_latency_ms.labels(service=service, operation=operation, outcome=outcome).observe(
            latency_ms
        )

    def inc_error(self, service: str, reason: str) -> None:
        """Increment error counter."""
        upstream_errors_total.labels(service=service, reason=reason).inc()

    def inc_plan_accepted(self) -> None:
        """Increment accepted tour plan counter."""
        tour_plans_accepted_total.inc()


class UpstreamMetrics:
    """No-op metrics recorder, used when none is injected."""

    def record_latency(self, service: str, operation: str, outcome: str, latency_ms: float) -> None:
        pass

    def inc_error(self, service: str, reason: str) -> None:
        pass

    def inc_plan_accepted(self) -> None:
        pass

"""Prometheus metric definitions shared across the relay."""

from prometheus_client import Counter, Gauge, Histogram, generate_latest
from starlette.responses import Response


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)
sso_handshakes_total = Counter(
    "sso_handshakes_total",
    "SSO handshake steps by outcome",
    ["service", "step", "outcome"],
)
webhook_provisioning_total = Counter(
    "webhook_provisioning_total",
    "Upstream webhook registrations by topic and outcome",
    ["service", "topic", "outcome"],
)
webhook_events_total = Counter(
    "webhook_events_total",
    "Inbound store webhook events",
    ["service", "topic"],
)
notification_persist_failures_total = Counter(
    "notification_persist_failures_total",
    "Notification events that could not be stored",
    ["service"],
)
push_jobs_total = Counter(
    "push_jobs_total",
    "Push notification jobs by outcome",
    ["service", "outcome"],
)
push_send_seconds = Histogram(
    "push_send_seconds",
    "Push send latency seconds",
    ["service"],
)
push_queue_depth = Gauge(
    "push_queue_depth",
    "Push jobs waiting for a worker",
    ["service"],
)
cache_lookups_total = Counter(
    "cache_lookups_total",
    "Response cache lookups by resource kind and result",
    ["service", "kind", "result"],
)
upstream_requests_total = Counter(
    "upstream_requests_total",
    "Calls to external dependencies by status class",
    ["service", "dependency", "status"],
)
upstream_latency_seconds = Histogram(
    "upstream_latency_seconds",
    "External dependency latency seconds",
    ["service", "dependency"],
)
retries_total = Counter("retries_total", "Retry count", ["service", "dependency"])


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")

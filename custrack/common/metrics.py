"""Prometheus metric definitions for the customer tracking service."""

from prometheus_client import Counter, Histogram, generate_latest
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
customers_created_total = Counter("customers_created_total", "Total customers created", ["service"])
status_transitions_total = Counter(
    "status_transitions_total",
    "Applied customer status transitions",
    ["service", "from_status", "to_status"],
)
status_transition_rejections_total = Counter(
    "status_transition_rejections_total",
    "Customer status transitions rejected by the transition table",
    ["service", "from_status", "to_status"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")

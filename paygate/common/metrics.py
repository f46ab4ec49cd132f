"""Prometheus metric definitions for the gateway process."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


payment_requests_total = Counter("payment_requests_total", "Total payment requests", ["service"])
payment_outcomes_total = Counter(
    "payment_outcomes_total",
    "Payments resolved by final ledger status",
    ["service", "status"],
)
payment_failure_total = Counter(
    "payment_failure_total",
    "Payments that returned a failure result",
    ["service", "kind"],
)
payment_latency_seconds = Histogram("payment_latency_seconds", "Payment latency seconds", ["service"])
payments_stuck_total = Counter(
    "payments_stuck_total",
    "Payments left Pending after the ledger insert (need external reconciliation)",
    ["service", "reason"],
)
bank_requests_total = Counter(
    "bank_requests_total",
    "Outbound acquiring bank calls by classified outcome",
    ["outcome"],
)
bank_request_duration_seconds = Histogram(
    "bank_request_duration_seconds",
    "Acquiring bank call duration seconds",
)
ledger_conflicts_total = Counter(
    "ledger_conflicts_total",
    "Rejected ledger writes (duplicate id or invalid transition)",
    ["backend", "operation"],
)
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


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")

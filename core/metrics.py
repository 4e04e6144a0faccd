"""
Prometheus metrics for the entitlement service.

Custom metrics for business logic and performance monitoring.
"""

from prometheus_client import Counter, Histogram

# HTTP metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)

# Entitlement metrics
reconciliations_total = Counter(
    "entitlement_reconciliations_total",
    "Total reconciliations by source and outcome",
    ["source", "outcome"],
)

license_keys_issued_total = Counter(
    "license_keys_issued_total",
    "Total license keys issued",
)

entitlement_transitions_total = Counter(
    "entitlement_transitions_total",
    "Plan transitions applied by reconciliation",
    ["from_plan", "to_plan"],
)

# Webhook metrics
webhook_events_total = Counter(
    "billing_webhook_events_total",
    "Billing webhook events received",
    ["event_type", "result"],
)

# Billing provider metrics
billing_provider_requests_seconds = Histogram(
    "billing_provider_request_duration_seconds",
    "Billing provider call duration in seconds",
    ["operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

billing_provider_errors_total = Counter(
    "billing_provider_errors_total",
    "Billing provider call failures",
    ["operation"],
)

# Error metrics
errors_total = Counter(
    "errors_total",
    "Total errors",
    ["error_type", "endpoint"],
)

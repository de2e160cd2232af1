"""Prometheus metrics for the Aiven Operator."""

from prometheus_client import Counter, Gauge, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "aiven_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "aiven_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

error_total = Counter(
    "aiven_operator_error_total",
    "Total number of reconcile errors",
    ["kind", "error_type"],
)

resource_status_total = Counter(
    "aiven_operator_resource_status_total",
    "Resource status observations",
    ["kind", "status"],
)

# Remote service operation metrics
service_operations_total = Counter(
    "aiven_operator_service_operations_total",
    "Total number of remote create/update/delete operations",
    ["kind", "operation", "result"],
)

# API call metrics
api_call_total = Counter(
    "aiven_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "aiven_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "aiven_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)

# Work queue metrics
requeue_total = Counter(
    "aiven_operator_requeue_total",
    "Total number of delayed requeues",
    ["kind", "reason"],
)

queue_depth = Gauge(
    "aiven_operator_queue_depth",
    "Keys waiting in the work queue, including delayed ones",
)

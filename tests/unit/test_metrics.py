"""Tests for Prometheus metrics."""

from __future__ import annotations

from prometheus_client import REGISTRY

from aiven_operator.metrics import (
    api_call_duration_seconds,
    api_call_total,
    error_total,
    queue_depth,
    rate_limit_hits_total,
    reconcile_duration_seconds,
    reconcile_total,
    requeue_total,
    resource_status_total,
    service_operations_total,
)


class TestMetricsExist:
    """Test that all expected metrics are defined."""

    def test_counter_names(self):
        """Test counters share the operator prefix."""
        # Prometheus counters don't include "_total" in their _name attribute
        assert reconcile_total._name == "aiven_operator_reconcile"
        assert error_total._name == "aiven_operator_error"
        assert resource_status_total._name == "aiven_operator_resource_status"
        assert service_operations_total._name == "aiven_operator_service_operations"
        assert api_call_total._name == "aiven_operator_api_call"
        assert rate_limit_hits_total._name == "aiven_operator_rate_limit_hits"
        assert requeue_total._name == "aiven_operator_requeue"

    def test_histogram_names(self):
        assert reconcile_duration_seconds._name == "aiven_operator_reconcile_duration_seconds"
        assert api_call_duration_seconds._name == "aiven_operator_api_call_duration_seconds"

    def test_labels(self):
        """Test label names."""
        assert reconcile_total._labelnames == ("kind", "result")
        assert error_total._labelnames == ("kind", "error_type")
        assert service_operations_total._labelnames == ("kind", "operation", "result")
        assert api_call_total._labelnames == ("api_type", "operation", "result")
        assert requeue_total._labelnames == ("kind", "reason")


class TestMetricsUsage:
    """Test metrics record values."""

    def test_counter_increment(self):
        """Test incrementing a labelled counter."""
        labels = {"kind": "MetricsTestKind", "result": "done"}
        before = REGISTRY.get_sample_value("aiven_operator_reconcile_total", labels) or 0.0

        reconcile_total.labels(**labels).inc()

        assert REGISTRY.get_sample_value("aiven_operator_reconcile_total", labels) == before + 1

    def test_histogram_observe(self):
        """Test observing a duration."""
        labels = {"kind": "MetricsTestKind"}
        before = REGISTRY.get_sample_value("aiven_operator_reconcile_duration_seconds_count", labels) or 0.0

        reconcile_duration_seconds.labels(**labels).observe(0.2)

        assert REGISTRY.get_sample_value("aiven_operator_reconcile_duration_seconds_count", labels) == before + 1

    def test_queue_depth_gauge(self):
        """Test the queue depth gauge can be set."""
        queue_depth.set(3)

        assert REGISTRY.get_sample_value("aiven_operator_queue_depth") == 3

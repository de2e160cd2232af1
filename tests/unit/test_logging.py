"""Tests for structured logging and correlation ids."""

from __future__ import annotations

import json
import logging

from aiven_operator.logging import log_resource_event, sanitize_secrets
from aiven_operator.utils.context import get_context_dict, get_correlation_id, with_correlation_id


class TestLogResourceEvent:
    """Test cases for log_resource_event."""

    def test_json_payload(self, caplog):
        """Test events are logged as JSON with resource fields."""
        logger = logging.getLogger("test.structured")

        with caplog.at_level(logging.INFO, logger="test.structured"):
            log_resource_event(
                logger,
                controller="aiven-operator",
                resource_kind="PostgreSQL",
                resource_name="p1-db",
                namespace="default",
                uid="uid-1",
                event="reconcile",
                reason="Created",
                message="Remote resource created",
                plan="startup-4",
            )

        payload = json.loads(caplog.records[-1].getMessage())
        assert payload["resource"] == "PostgreSQL"
        assert payload["reason"] == "Created"
        assert payload["plan"] == "startup-4"

    def test_correlation_id_included(self, caplog):
        """Test the active correlation id is attached."""
        logger = logging.getLogger("test.structured")

        with caplog.at_level(logging.INFO, logger="test.structured"), with_correlation_id("abc123"):
            log_resource_event(logger, "c", "Kafka", "k", "ns", "u", "e", "r", "m")

        assert json.loads(caplog.records[-1].getMessage())["correlation_id"] == "abc123"

    def test_sanitize_secrets(self):
        """Test secret fields are redacted."""
        result = sanitize_secrets({"token": "t", "password": "p", "name": "n"})

        assert result == {"token": "***REDACTED***", "password": "***REDACTED***", "name": "n"}


class TestCorrelationId:
    """Test cases for correlation id propagation."""

    def test_scoped(self):
        """Test the id only lives inside the block."""
        assert get_correlation_id() is None

        with with_correlation_id() as corr_id:
            assert get_correlation_id() == corr_id
            assert get_context_dict({"x": 1}) == {"correlation_id": corr_id, "x": 1}

        assert get_correlation_id() is None

"""Tests for the kopf wiring in main."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import kopf
import pytest

from aiven_operator.constants import FINALIZER
from aiven_operator.main import configure, needs_reconcile, on_descriptor_event, shutdown
from aiven_operator.models import ResourceKey


def body(generation=2, observed=1, finalizers=None, deletion_timestamp=None):
    metadata = {"name": "p1-db", "namespace": "default", "generation": generation, "finalizers": finalizers or []}
    if deletion_timestamp:
        metadata["deletionTimestamp"] = deletion_timestamp
    status = {"observedGeneration": observed} if observed is not None else {}
    return {"kind": "PostgreSQL", "metadata": metadata, "status": status}


class TestNeedsReconcile:
    """Test cases for the watch event filter."""

    @pytest.mark.parametrize("event_type", [None, "ADDED"])
    def test_initial_and_added(self, event_type):
        """Listing and creation always enqueue."""
        assert needs_reconcile(event_type, body(generation=1, observed=1))

    def test_spec_change(self):
        """A generation ahead of observedGeneration enqueues."""
        assert needs_reconcile("MODIFIED", body(generation=2, observed=1))

    def test_status_only_change(self):
        """Status writes do not bump the generation and are ignored."""
        assert not needs_reconcile("MODIFIED", body(generation=2, observed=2))

    def test_deletion_requested(self):
        """A deletionTimestamp enqueues regardless of generation."""
        assert needs_reconcile("MODIFIED", body(generation=2, observed=2, deletion_timestamp="2024-01-01T00:00:00Z"))

    def test_deleted(self):
        """Objects already removed from the store are ignored."""
        assert not needs_reconcile("DELETED", body())

    def test_finalizer_added_by_first_pass(self):
        """The finalizer write of an in-flight first pass is ignored."""
        assert not needs_reconcile("MODIFIED", body(generation=1, observed=None, finalizers=[FINALIZER]))

    def test_modified_before_first_pass(self):
        """Without status or finalizer the change is enqueued."""
        assert needs_reconcile("MODIFIED", body(generation=1, observed=None))


class TestEventHandler:
    """Test cases for on_descriptor_event."""

    def test_enqueues_key(self):
        memo = kopf.Memo()
        memo.dispatcher = MagicMock()

        on_descriptor_event(event={"type": "ADDED"}, body=body(), memo=memo)

        memo.dispatcher.enqueue.assert_called_once_with(ResourceKey("PostgreSQL", "default", "p1-db"))

    def test_filtered_event_not_enqueued(self):
        memo = kopf.Memo()
        memo.dispatcher = MagicMock()

        on_descriptor_event(event={"type": "MODIFIED"}, body=body(generation=2, observed=2), memo=memo)

        memo.dispatcher.enqueue.assert_not_called()

    def test_before_startup(self):
        """Events arriving before startup finished are dropped."""
        on_descriptor_event(event={"type": "ADDED"}, body=body(), memo=kopf.Memo())


class TestLifecycle:
    """Startup and cleanup handlers."""

    @patch("aiven_operator.main.health.start_http_server")
    @patch("aiven_operator.main.DescriptorStore")
    @patch("aiven_operator.main.load_kubernetes_config")
    @patch("aiven_operator.main.WorkDispatcher")
    def test_configure_starts_dispatcher(self, mock_dispatcher, mock_load, mock_store, mock_server, monkeypatch):
        monkeypatch.setenv("AIVEN_TOKEN", "tok")
        memo = kopf.Memo()
        settings = kopf.OperatorSettings()

        configure(settings=settings, memo=memo)

        mock_load.assert_called_once()
        mock_dispatcher.return_value.start.assert_called_once()
        assert memo.dispatcher is mock_dispatcher.return_value
        assert memo.clients.default_token == "tok"
        mock_server.assert_called_once()
        assert settings.posting.level == 0

    def test_shutdown_stops_everything(self):
        memo = kopf.Memo()
        memo.dispatcher = MagicMock()
        memo.clients = MagicMock()
        memo.server = MagicMock()

        shutdown(memo=memo)

        memo.dispatcher.stop.assert_called_once()
        memo.clients.close.assert_called_once()
        memo.server.shutdown.assert_called_once()

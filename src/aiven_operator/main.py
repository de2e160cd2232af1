"""Main entry point for the Aiven Operator.

kopf only watches the descriptor kinds and forwards interesting changes to
the work dispatcher; all convergence logic lives in the reconciliation
engine, which the dispatcher runs on its own worker threads.
"""

from __future__ import annotations

import logging
from typing import Any

import kopf

from . import health
from . import logging as structured_logging
from .adapters import AdapterRegistry
from .config import OperatorConfig
from .constants import API_GROUP_VERSION, FINALIZER, PLURALS
from .dispatcher import WorkDispatcher
from .engine import ReconciliationEngine
from .models import ResourceKey
from .services.aiven import AivenClientPool
from .store import DescriptorStore, load_kubernetes_config
from .tracing import initialize_tracing

logger = logging.getLogger(__name__)


def needs_reconcile(event_type: str | None, body: dict[str, Any]) -> bool:
    """Decide whether a watch event should enqueue its descriptor.

    Status-only and metadata-only changes written by the engine itself do
    not bump ``metadata.generation`` and are filtered out here.
    """
    if event_type == "DELETED":
        return False
    if event_type in (None, "ADDED"):
        return True

    meta = body.get("metadata", {})
    if meta.get("deletionTimestamp"):
        return True

    observed = body.get("status", {}).get("observedGeneration")
    if observed is None and FINALIZER in (meta.get("finalizers") or []):
        # First pass still in flight; it already holds the key
        return False
    return meta.get("generation") != observed


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, memo: kopf.Memo, **_: Any) -> None:
    """Configure the operator and start the reconcile workers."""
    structured_logging.setup_structured_logging()

    settings.posting.level = 0
    settings.networking.request_timeout = 30.0

    config = OperatorConfig.from_env()
    if initialize_tracing():
        logger.info("OpenTelemetry tracing enabled")

    load_kubernetes_config()
    clients = AivenClientPool(
        base_url=config.api_url,
        default_token=config.default_token,
        rate_limit_per_second=config.rate_limit_per_second,
        timeout=config.request_timeout,
    )
    registry = AdapterRegistry()
    engine = ReconciliationEngine(DescriptorStore(), clients, registry, config.timings)
    dispatcher = WorkDispatcher(engine, workers=config.workers, timings=config.timings)
    dispatcher.start()

    memo.config = config
    memo.clients = clients
    memo.dispatcher = dispatcher
    memo.server = health.start_http_server(config.metrics_port, lambda: dispatcher.is_running)
    logger.info(f"Aiven operator started for kinds {', '.join(registry.kinds)}")


@kopf.on.cleanup()
def shutdown(memo: kopf.Memo, **_: Any) -> None:
    """Stop the workers and release HTTP clients."""
    dispatcher = getattr(memo, "dispatcher", None)
    if dispatcher is not None:
        dispatcher.stop()
    clients = getattr(memo, "clients", None)
    if clients is not None:
        clients.close()
    server = getattr(memo, "server", None)
    if server is not None:
        server.shutdown()


def on_descriptor_event(event: dict[str, Any], body: kopf.Body, memo: kopf.Memo, **_: Any) -> None:
    """Forward a watch event to the dispatcher when it needs a reconcile."""
    if not needs_reconcile(event.get("type"), body):
        return
    dispatcher = getattr(memo, "dispatcher", None)
    if dispatcher is None:
        return
    meta = body.get("metadata", {})
    dispatcher.enqueue(ResourceKey(body.get("kind", ""), meta.get("namespace", ""), meta.get("name", "")))


for _kind in PLURALS:
    kopf.on.event(API_GROUP_VERSION, _kind)(on_descriptor_event)


def run() -> None:
    """Run the operator, optionally restricted to WATCH_NAMESPACE."""
    namespace = OperatorConfig.from_env().watch_namespace
    if namespace:
        kopf.run(namespaces=[namespace], standalone=True)
    else:
        kopf.run(clusterwide=True, standalone=True)

"""The reconciliation engine.

One call to :meth:`ReconciliationEngine.reconcile` runs a single step of the
convergence state machine for one descriptor and reports what should happen
next as a :class:`ReconcileResult`; the engine never sleeps. The sequence is:

* deleting descriptors: ``delete()`` until the remote side reports the
  resource absent, then drop the finalizer;
* otherwise: ensure the finalizer, check preconditions, ``exists()`` then
  ``create()`` or ``update()``, poll ``is_active()``, write the connection
  secret and mark the descriptor ready.

Kind specifics live behind the adapter returned by the adapter factory.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable

from kubernetes.client.exceptions import ApiException

from . import metrics
from .adapters import AdapterFactory, BaseAdapter
from .config import EngineTimings
from .constants import (
    COND_DEGRADED,
    COND_RECONCILE_ERROR,
    CONTROLLER_NAME,
    PHASE_DELETING,
    PHASE_ERROR,
    PHASE_PROVISIONING,
    PHASE_READY,
)
from .logging import log_resource_event
from .models import Descriptor, ResourceKey
from .results import ReconcileResult
from .services.aiven.base import ControlPlaneClient
from .services.aiven.client import AivenClientPool
from .store import DescriptorStore
from .tracing import set_span_status, trace_span
from .utils.conditions import (
    remove_condition,
    set_degraded_condition,
    set_error_condition,
    set_preconditions_condition,
    set_ready_condition,
)
from .utils.context import with_correlation_id
from .utils.errors import (
    ConflictError,
    DeadlineExceeded,
    DescriptorError,
    RemoteError,
    sanitize_exception,
)
from .utils.events import (
    emit_created,
    emit_delete_pending,
    emit_deleted,
    emit_preconditions_not_met,
    emit_reconcile_failed,
    emit_running,
    emit_updated,
)
from .utils.rate_limit import exponential_backoff

logger = logging.getLogger(__name__)


class ReconciliationEngine:
    """Drives descriptors of any registered kind toward their desired state."""

    def __init__(
        self,
        store: DescriptorStore,
        clients: AivenClientPool,
        adapter_factory: AdapterFactory,
        timings: EngineTimings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.clients = clients
        self.adapter_factory = adapter_factory
        self.timings = timings or EngineTimings()
        self.clock = clock

    def reconcile(
        self,
        key: ResourceKey,
        attempt: int = 0,
        deadline: float | None = None,
    ) -> ReconcileResult:
        """Run one reconcile step for a descriptor.

        Args:
            key: Descriptor identity
            attempt: Consecutive backoff retries so far for this key
            deadline: Clock value after which no further remote call is started

        Returns:
            What the dispatcher should do with the key next
        """
        if deadline is None:
            deadline = self.clock() + self.timings.reconcile_timeout

        start_time = time.time()
        with with_correlation_id(), trace_span(
            "reconcile",
            kind=key.kind,
            attributes={"resource.name": key.name, "resource.namespace": key.namespace},
        ):
            try:
                result = self._reconcile(key, attempt, deadline)
            except Exception as e:
                result = self._handle_error(key, e, attempt)
            set_span_status(not result.is_failed, result.reason or None)

        metrics.reconcile_total.labels(kind=key.kind, result=result.outcome.value).inc()
        metrics.reconcile_duration_seconds.labels(kind=key.kind).observe(time.time() - start_time)
        return result

    def _reconcile(self, key: ResourceKey, attempt: int, deadline: float) -> ReconcileResult:
        descriptor = self.store.get(key)
        if descriptor is None:
            logger.debug(f"{key} no longer exists, nothing to do")
            return ReconcileResult.done(reason="gone")

        adapter = self._adapter(key.kind)
        adapter.convert(descriptor)

        if descriptor.deleting:
            return self._finalize(adapter, descriptor, deadline)

        if not descriptor.has_finalizer:
            descriptor = self._with_conflict_retry(descriptor, self.store.add_finalizer)
            if descriptor is None:
                return ReconcileResult.done(reason="gone")
            self._log(descriptor, "Finalizer added", reason="FinalizerAdded")

        self._check_deadline(deadline)
        client = self._resolve_client(adapter, descriptor)
        if client is None:
            return self._wait_for_preconditions(descriptor, "auth secret is not available")
        if not adapter.check_preconditions(client, descriptor):
            return self._wait_for_preconditions(descriptor, "referenced resources are not ready")
        conditions = set_preconditions_condition(
            descriptor.conditions, True, "Preconditions met", descriptor.generation
        )

        self._check_deadline(deadline)
        if not adapter.exists(client, descriptor):
            status = adapter.create(client, descriptor)
            metrics.service_operations_total.labels(kind=key.kind, operation="create", result="success").inc()
            emit_created(descriptor.reference(), descriptor.name)
            self._log(descriptor, "Remote resource created", reason="Created")
            conditions = set_ready_condition(
                conditions, False, "Remote resource is being provisioned", descriptor.generation,
                reason="Provisioning",
            )
            self._persist_status(descriptor, {**status, "phase": PHASE_PROVISIONING}, conditions)
            return ReconcileResult.retry(self.timings.poll_interval, "created")

        status = adapter.update(client, descriptor)
        metrics.service_operations_total.labels(kind=key.kind, operation="update", result="success").inc()
        phase = descriptor.status.get("phase")
        if phase not in (PHASE_PROVISIONING, PHASE_READY):
            phase = PHASE_PROVISIONING
        if descriptor.status.get("observedGeneration") != descriptor.generation:
            emit_updated(descriptor.reference(), descriptor.name)
        descriptor = self._persist_status(descriptor, {**status, "phase": phase}, conditions)
        if descriptor is None:
            return ReconcileResult.done(reason="gone")

        self._check_deadline(deadline)
        if not adapter.is_active(client, descriptor):
            return self._wait_for_active(descriptor, attempt)

        self._check_deadline(deadline)
        payload = adapter.get_secret(client, descriptor)
        ready_status: dict[str, Any] = {
            "phase": PHASE_READY,
            "lastSyncTime": datetime.now(timezone.utc).isoformat(),
        }
        if payload is not None:
            self.store.upsert_secret(
                descriptor.namespace,
                payload.name,
                payload.data,
                owner=descriptor.reference(),
            )
            ready_status["connInfoSecret"] = payload.name

        conditions = remove_condition(descriptor.conditions, COND_DEGRADED)
        conditions = remove_condition(conditions, COND_RECONCILE_ERROR)
        conditions = set_ready_condition(conditions, True, "Remote resource is running", descriptor.generation)
        if descriptor.status.get("phase") != PHASE_READY:
            emit_running(descriptor.reference(), descriptor.name)
            self._log(descriptor, "Remote resource is running", reason="Running")
        self._persist_status(descriptor, ready_status, conditions)
        metrics.resource_status_total.labels(kind=key.kind, status="ready").inc()
        return ReconcileResult.done(self.timings.resync_interval, "ready")

    def _finalize(self, adapter: BaseAdapter, descriptor: Descriptor, deadline: float) -> ReconcileResult:
        if not descriptor.has_finalizer:
            return ReconcileResult.done(reason="no_finalizer")

        if descriptor.status.get("phase") != PHASE_DELETING:
            updated = self._persist_status(descriptor, {"phase": PHASE_DELETING})
            if updated is None:
                return ReconcileResult.done(reason="gone")
            descriptor = updated

        self._check_deadline(deadline)
        client = self._resolve_client(adapter, descriptor)
        if client is None:
            self._log(descriptor, "Cannot delete without the auth secret", reason="AuthUnavailable",
                      level=logging.WARNING)
            return ReconcileResult.retry(self.timings.delete_retry_interval, "auth_unavailable")

        try:
            gone = adapter.delete(client, descriptor)
        except (RemoteError, DescriptorError) as e:
            # Anything but NotFound keeps the finalizer, malformed specs included
            message = f"Delete failed: {sanitize_exception(e)}"
            metrics.service_operations_total.labels(kind=descriptor.kind, operation="delete", result="failed").inc()
            self._log(descriptor, message, reason="DeleteFailed", level=logging.WARNING, error_type=type(e).__name__)
            emit_reconcile_failed(descriptor.reference(), message)
            if isinstance(e, DescriptorError) or e.is_fatal:
                self._persist_status(
                    descriptor,
                    {},
                    set_error_condition(descriptor.conditions, message, descriptor.generation),
                )
            return ReconcileResult.retry(self.timings.delete_retry_interval, "delete_failed")

        if not gone:
            emit_delete_pending(descriptor.reference(), descriptor.name)
            self._log(descriptor, "Remote resource still present", reason="DeletePending")
            return ReconcileResult.retry(self.timings.delete_retry_interval, "delete_pending")

        metrics.service_operations_total.labels(kind=descriptor.kind, operation="delete", result="success").inc()
        self._with_conflict_retry(descriptor, self.store.remove_finalizer)
        emit_deleted(descriptor.reference(), descriptor.name)
        self._log(descriptor, "Remote resource deleted, finalizer removed", reason="Deleted")
        return ReconcileResult.done(reason="deleted")

    def _wait_for_preconditions(self, descriptor: Descriptor, message: str) -> ReconcileResult:
        conditions = set_preconditions_condition(descriptor.conditions, False, message, descriptor.generation)
        conditions = set_ready_condition(conditions, False, message, descriptor.generation, reason="Waiting")
        self._persist_status(descriptor, {}, conditions)
        emit_preconditions_not_met(descriptor.reference(), message)
        self._log(descriptor, message, reason="PreconditionsNotMet")
        return ReconcileResult.retry(self.timings.precondition_interval, "preconditions")

    def _wait_for_active(self, descriptor: Descriptor, attempt: int) -> ReconcileResult:
        if descriptor.status.get("phase") != PHASE_PROVISIONING:
            conditions = set_ready_condition(
                descriptor.conditions, False, "Remote resource is not running", descriptor.generation,
                reason="NotRunning",
            )
            self._persist_status(descriptor, {"phase": PHASE_PROVISIONING}, conditions)
        delay = exponential_backoff(attempt, self.timings.backoff_base, self.timings.backoff_max)
        return ReconcileResult.retry(delay, "not_active", backoff=True)

    def _handle_error(self, key: ResourceKey, error: Exception, attempt: int) -> ReconcileResult:
        message = sanitize_exception(error)
        error_type = type(error).__name__
        metrics.error_total.labels(kind=key.kind, error_type=error_type).inc()

        if isinstance(error, DescriptorError) or (isinstance(error, RemoteError) and error.is_fatal):
            logger.error(f"{key} reconcile failed permanently: {message}")
            self._record_failure(key, message, fatal=True)
            metrics.resource_status_total.labels(kind=key.kind, status="error").inc()
            return ReconcileResult.failed(message)

        delay = exponential_backoff(attempt, self.timings.backoff_base, self.timings.backoff_max)
        if isinstance(error, (RemoteError, ConflictError, DeadlineExceeded, ApiException)):
            logger.warning(f"{key} transient failure ({error_type}), retrying in {delay:.0f}s: {message}")
        else:
            logger.exception(f"{key} unexpected failure, retrying in {delay:.0f}s")

        if attempt >= self.timings.degraded_after:
            self._record_failure(key, f"Still failing after {attempt + 1} attempts: {message}", fatal=False)
        return ReconcileResult.retry(delay, "transient_error", backoff=True)

    def _record_failure(self, key: ResourceKey, message: str, fatal: bool) -> None:
        """Write failure details to status, without masking the original failure.

        Fatal failures set the Error phase and the ReconcileError condition;
        transient ones past the backoff ceiling set Degraded.
        """
        try:
            descriptor = self.store.get(key)
            if descriptor is None:
                return
            updates: dict[str, Any] = {}
            if fatal:
                conditions = set_error_condition(descriptor.conditions, message, descriptor.generation)
                conditions = set_ready_condition(
                    conditions, False, message, descriptor.generation, reason="ReconcileError"
                )
                if not descriptor.deleting:
                    updates["phase"] = PHASE_ERROR
            else:
                conditions = set_degraded_condition(descriptor.conditions, message, descriptor.generation)
            self._persist_status(descriptor, updates, conditions)
            emit_reconcile_failed(descriptor.reference(), message)
        except Exception as e:
            logger.warning(f"{key} could not record failure in status: {sanitize_exception(e)}")

    def _adapter(self, kind: str) -> BaseAdapter:
        try:
            return self.adapter_factory(kind)
        except KeyError as e:
            raise DescriptorError(str(e)) from e

    def _resolve_client(self, adapter: BaseAdapter, descriptor: Descriptor) -> ControlPlaneClient | None:
        """Client for the descriptor's token, or None while its auth secret is unavailable.

        Raises:
            DescriptorError: If there is neither an auth secret reference nor a default token
        """
        reference = adapter.get_secret_reference(descriptor)
        if reference is None:
            try:
                return self.clients.get(None)
            except ValueError as e:
                raise DescriptorError(str(e)) from e

        try:
            token = self.store.read_secret_value(descriptor.namespace, reference.name, reference.key)
        except ValueError as e:
            self._log(descriptor, f"Auth secret unavailable: {e}", reason="AuthSecretUnavailable")
            return None
        return self.clients.get(token)

    def _persist_status(
        self,
        descriptor: Descriptor,
        updates: dict[str, Any],
        conditions: list[dict[str, Any]] | None = None,
    ) -> Descriptor | None:
        """Merge updates into status, skipping the write when nothing changes."""
        status = {**updates, "observedGeneration": descriptor.generation}
        if conditions is not None:
            status["conditions"] = conditions
        if all(descriptor.status.get(k) == v for k, v in status.items()):
            return descriptor
        return self._with_conflict_retry(descriptor, lambda d: self.store.patch_status(d, status))

    def _with_conflict_retry(
        self,
        descriptor: Descriptor,
        write: Callable[[Descriptor], Descriptor],
    ) -> Descriptor | None:
        """Apply a version-stamped write, retrying once against the latest version.

        Returns:
            The written descriptor, or None if it disappeared meanwhile

        Raises:
            ConflictError: If the retry conflicts as well
        """
        try:
            return write(descriptor)
        except ConflictError:
            latest = self.store.get(descriptor.key)
            if latest is None:
                return None
            return write(latest)

    def _check_deadline(self, deadline: float) -> None:
        if self.clock() >= deadline:
            raise DeadlineExceeded("reconcile step deadline exceeded")

    def _log(
        self,
        descriptor: Descriptor,
        message: str,
        reason: str,
        level: int = logging.INFO,
        **kwargs: Any,
    ) -> None:
        log_resource_event(
            logger,
            controller=CONTROLLER_NAME,
            resource_kind=descriptor.kind,
            resource_name=descriptor.name,
            namespace=descriptor.namespace,
            uid=descriptor.uid,
            event="reconcile",
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )

"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

import logging
from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_CREATED,
    EVENT_REASON_DELETE_PENDING,
    EVENT_REASON_DELETED,
    EVENT_REASON_PRECONDITIONS_NOT_MET,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RUNNING,
    EVENT_REASON_UPDATED,
)

logger = logging.getLogger(__name__)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Events are posted through kopf's posting queue. Outside of an operator
    context (no posting queue) the event is only logged.

    Args:
        body: Object reference body (apiVersion, kind, metadata)
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    try:
        kopf.event(
            body,
            reason=reason,
            message=message,
            type=type_,
        )
    except LookupError:
        logger.debug("Event %s not posted, no posting queue: %s", reason, message)


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_preconditions_not_met(body: dict[str, Any], message: str) -> None:
    """Emit preconditions not met event."""
    emit_event(body, EVENT_REASON_PRECONDITIONS_NOT_MET, message)


def emit_created(body: dict[str, Any], name: str) -> None:
    """Emit remote resource created event."""
    emit_event(body, EVENT_REASON_CREATED, f"Remote resource {name} created")


def emit_updated(body: dict[str, Any], name: str) -> None:
    """Emit remote resource updated event."""
    emit_event(body, EVENT_REASON_UPDATED, f"Remote resource {name} updated")


def emit_running(body: dict[str, Any], name: str) -> None:
    """Emit remote resource running event."""
    emit_event(body, EVENT_REASON_RUNNING, f"Remote resource {name} is running")


def emit_delete_pending(body: dict[str, Any], name: str) -> None:
    """Emit delete pending event."""
    emit_event(body, EVENT_REASON_DELETE_PENDING, f"Waiting for remote resource {name} to go away")


def emit_deleted(body: dict[str, Any], name: str) -> None:
    """Emit remote resource deleted event."""
    emit_event(body, EVENT_REASON_DELETED, f"Remote resource {name} deleted")

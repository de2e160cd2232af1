"""Utilities for managing Kubernetes conditions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..constants import (
    COND_DEGRADED,
    COND_PRECONDITIONS_MET,
    COND_READY,
    COND_RECONCILE_ERROR,
)


def update_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Update or add a condition to the conditions list.

    The input list is not modified; a new list is returned.

    Args:
        conditions: List of existing conditions
        condition_type: Type of condition
        status: Status of condition ("True", "False", "Unknown")
        reason: Reason for the condition
        message: Human-readable message
        observed_generation: Generation when condition was observed

    Returns:
        Updated list of conditions
    """
    now = datetime.now(timezone.utc).isoformat()
    updated = [dict(cond) for cond in conditions]

    new_condition: dict[str, Any] = {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
        "lastTransitionTime": now,
    }
    if observed_generation is not None:
        new_condition["observedGeneration"] = observed_generation

    for idx, cond in enumerate(updated):
        if cond.get("type") == condition_type:
            # Only update lastTransitionTime if status changed
            if cond.get("status") == status:
                new_condition["lastTransitionTime"] = cond.get("lastTransitionTime", now)
            updated[idx] = new_condition
            break
    else:
        updated.append(new_condition)

    return updated


def remove_condition(conditions: list[dict[str, Any]], condition_type: str) -> list[dict[str, Any]]:
    """Drop a condition type from the list."""
    return [dict(cond) for cond in conditions if cond.get("type") != condition_type]


def get_condition(conditions: list[dict[str, Any]], condition_type: str) -> dict[str, Any] | None:
    """Return the condition of the given type, if present."""
    for cond in conditions:
        if cond.get("type") == condition_type:
            return cond
    return None


def set_ready_condition(
    conditions: list[dict[str, Any]],
    status: bool,
    message: str,
    observed_generation: int | None = None,
    reason: str | None = None,
) -> list[dict[str, Any]]:
    """Set the Ready condition."""
    return update_condition(
        conditions,
        COND_READY,
        "True" if status else "False",
        reason or ("Ready" if status else "NotReady"),
        message,
        observed_generation,
    )


def set_preconditions_condition(
    conditions: list[dict[str, Any]],
    met: bool,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the PreconditionsMet condition."""
    return update_condition(
        conditions,
        COND_PRECONDITIONS_MET,
        "True" if met else "False",
        "PreconditionsMet" if met else "Waiting",
        message,
        observed_generation,
    )


def set_degraded_condition(
    conditions: list[dict[str, Any]],
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the Degraded condition."""
    return update_condition(
        conditions,
        COND_DEGRADED,
        "True",
        "BackoffCeilingReached",
        message,
        observed_generation,
    )


def set_error_condition(
    conditions: list[dict[str, Any]],
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the ReconcileError condition."""
    return update_condition(
        conditions,
        COND_RECONCILE_ERROR,
        "True",
        "ReconcileError",
        message,
        observed_generation,
    )

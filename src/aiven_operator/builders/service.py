"""Builder for service create/update requests."""

from __future__ import annotations

from typing import Any

from ..models import ServiceSpec


def build_maintenance_window(dow: str | None, time_of_day: str | None) -> dict[str, str] | None:
    """Maintenance window payload, only when both day and time are given."""
    if dow and time_of_day:
        return {"dow": dow, "time": time_of_day}
    return None


def build_create_request(name: str, service_type: str, spec: ServiceSpec) -> dict[str, Any]:
    """Create a service creation payload from a parsed spec.

    Args:
        name: Service name (the descriptor name)
        service_type: Remote service type tag, e.g. "pg"
        spec: Parsed service spec

    Returns:
        Request body for the create call
    """
    request: dict[str, Any] = {
        "service_name": name,
        "service_type": service_type,
        "plan": spec.plan,
        "user_config": spec.user_config,
        "termination_protection": spec.termination_protection,
    }
    request.update(_common_fields(spec))
    return request


def build_update_request(spec: ServiceSpec) -> dict[str, Any]:
    """Create a service update payload from a parsed spec.

    Args:
        spec: Parsed service spec

    Returns:
        Request body for the update call
    """
    request: dict[str, Any] = {
        "plan": spec.plan,
        "user_config": spec.user_config,
        "termination_protection": spec.termination_protection,
        "powered": True,
    }
    request.update(_common_fields(spec))
    return request


def _common_fields(spec: ServiceSpec) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    if spec.cloud_name:
        fields["cloud"] = spec.cloud_name
    maintenance = build_maintenance_window(spec.maintenance_window_dow, spec.maintenance_window_time)
    if maintenance:
        fields["maintenance"] = maintenance
    if spec.project_vpc_id:
        fields["project_vpc_id"] = spec.project_vpc_id
    if spec.disk_space_mb is not None:
        fields["disk_space_mb"] = spec.disk_space_mb
    return fields

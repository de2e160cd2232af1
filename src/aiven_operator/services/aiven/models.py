"""Models for Aiven control-plane responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ServiceUser:
    """Credentials of a service user."""

    username: str
    password: str | None = None
    user_type: str | None = None


@dataclass
class RemoteResource:
    """A service as reported by the control plane."""

    name: str
    service_type: str
    state: str
    plan: str | None = None
    cloud_name: str | None = None
    uri: str | None = None
    uri_params: dict[str, str] = field(default_factory=dict)
    users: list[ServiceUser] = field(default_factory=list)
    connection_info: dict[str, Any] = field(default_factory=dict)
    maintenance_dow: str | None = None
    maintenance_time: str | None = None
    project_vpc_id: str | None = None
    disk_space_mb: int | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RemoteResource:
        """Parse the ``service`` object of an API response."""
        maintenance = data.get("maintenance") or {}
        return cls(
            name=data.get("service_name", ""),
            service_type=data.get("service_type", ""),
            state=data.get("state", ""),
            plan=data.get("plan"),
            cloud_name=data.get("cloud_name"),
            uri=data.get("service_uri"),
            uri_params={k: str(v) for k, v in (data.get("service_uri_params") or {}).items()},
            users=[
                ServiceUser(
                    username=user.get("username", ""),
                    password=user.get("password"),
                    user_type=user.get("type"),
                )
                for user in data.get("users") or []
            ],
            connection_info=dict(data.get("connection_info") or {}),
            maintenance_dow=maintenance.get("dow"),
            maintenance_time=maintenance.get("time"),
            project_vpc_id=data.get("project_vpc_id"),
            disk_space_mb=data.get("disk_space_mb"),
        )

    @property
    def primary_user(self) -> ServiceUser | None:
        """The first (admin) service user, if any."""
        return self.users[0] if self.users else None


@dataclass
class RemoteDatabase:
    """A logical database inside a service."""

    name: str
    lc_collate: str | None = None
    lc_ctype: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RemoteDatabase:
        return cls(
            name=data.get("database_name", ""),
            lc_collate=data.get("lc_collate"),
            lc_ctype=data.get("lc_ctype"),
        )

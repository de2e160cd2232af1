"""Adapter for logical databases inside a PostgreSQL or MySQL service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..constants import KIND_DATABASE, SERVICE_STATE_RUNNING
from ..models import Descriptor
from ..services.aiven.base import ControlPlaneClient
from ..services.aiven.models import RemoteDatabase
from ..utils.errors import DescriptorError, ErrorKind, RemoteError, is_not_found
from .base import BaseAdapter


@dataclass(frozen=True)
class DatabaseSpec:
    project: str
    service_name: str
    lc_collate: str | None = None
    lc_ctype: str | None = None
    termination_protection: bool = False

    @classmethod
    def from_spec(cls, spec: dict[str, Any]) -> DatabaseSpec:
        if not spec.get("project"):
            raise DescriptorError("spec.project is required")
        if not spec.get("serviceName"):
            raise DescriptorError("spec.serviceName is required")
        return cls(
            project=spec["project"],
            service_name=spec["serviceName"],
            lc_collate=spec.get("lcCollate") or None,
            lc_ctype=spec.get("lcCtype") or None,
            termination_protection=bool(spec.get("terminationProtection", False)),
        )


class DatabaseAdapter(BaseAdapter):
    """Databases have no credentials of their own and cannot be altered in place."""

    kind = KIND_DATABASE

    def parse_spec(self, descriptor: Descriptor) -> DatabaseSpec:
        self.convert(descriptor)
        return DatabaseSpec.from_spec(descriptor.spec)

    def _find(self, client: ControlPlaneClient, descriptor: Descriptor) -> RemoteDatabase | None:
        spec = self.parse_spec(descriptor)
        try:
            databases = client.list_databases(spec.project, spec.service_name)
        except RemoteError as e:
            if is_not_found(e):
                return None
            raise
        for database in databases:
            if database.name == descriptor.name:
                return database
        return None

    @staticmethod
    def _status(spec: DatabaseSpec) -> dict[str, Any]:
        return {"serviceName": spec.service_name, "project": spec.project}

    def exists(self, client: ControlPlaneClient, descriptor: Descriptor) -> bool:
        return self._find(client, descriptor) is not None

    def create(self, client: ControlPlaneClient, descriptor: Descriptor) -> dict[str, Any]:
        spec = self.parse_spec(descriptor)
        request: dict[str, Any] = {"database": descriptor.name}
        if spec.lc_collate:
            request["lc_collate"] = spec.lc_collate
        if spec.lc_ctype:
            request["lc_ctype"] = spec.lc_ctype
        self.log_info(descriptor, f"Creating database in service {spec.service_name}", reason="Creating")
        client.create_database(spec.project, spec.service_name, request)
        return self._status(spec)

    def update(self, client: ControlPlaneClient, descriptor: Descriptor) -> dict[str, Any]:
        spec = self.parse_spec(descriptor)
        current = self._find(client, descriptor)
        if current is not None and (
            (spec.lc_collate and current.lc_collate != spec.lc_collate)
            or (spec.lc_ctype and current.lc_ctype != spec.lc_ctype)
        ):
            self.log_warning(
                descriptor,
                "Collation settings cannot be changed on an existing database",
                reason="ImmutableField",
            )
        return self._status(spec)

    def delete(self, client: ControlPlaneClient, descriptor: Descriptor) -> bool:
        spec = self.parse_spec(descriptor)
        if spec.termination_protection:
            raise RemoteError(
                f"database {descriptor.name} has terminationProtection enabled",
                ErrorKind.FATAL,
            )
        try:
            client.delete_database(spec.project, spec.service_name, descriptor.name)
        except RemoteError as e:
            if is_not_found(e):
                return True
            raise
        return self._find(client, descriptor) is None

    def is_active(self, client: ControlPlaneClient, descriptor: Descriptor) -> bool:
        return self.exists(client, descriptor)

    def check_preconditions(self, client: ControlPlaneClient, descriptor: Descriptor) -> bool:
        spec = self.parse_spec(descriptor)
        try:
            service = client.get_service(spec.project, spec.service_name)
        except RemoteError as e:
            if is_not_found(e):
                self.log_info(descriptor, f"Service {spec.service_name} not found", reason="ServiceNotFound")
                return False
            raise
        return service.state == SERVICE_STATE_RUNNING

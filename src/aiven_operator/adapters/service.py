"""Generic adapter for uniform service kinds.

PostgreSQL, Kafka, Redis and MySQL differ only in their service type tag,
whether they accept a disk size, and how credentials map onto the generated
secret. Everything else (existence, create/update payloads, readiness,
deletion and preconditions) is implemented once here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from ..builders.service import build_create_request, build_update_request
from ..constants import SERVICE_STATE_RUNNING, VPC_STATE_ACTIVE
from ..models import Descriptor, ServiceSpec
from ..services.aiven.base import ControlPlaneClient
from ..services.aiven.models import RemoteResource
from ..utils.errors import DescriptorError, ErrorKind, RemoteError, is_not_found
from .base import BaseAdapter, SecretPayload

SecretMapper = Callable[[ControlPlaneClient, ServiceSpec, RemoteResource], dict[str, Any]]


@dataclass(frozen=True)
class ServiceKind:
    """Per-kind parameters of the generic service adapter."""

    kind: str
    service_type: str
    secret_mapper: SecretMapper
    supports_disk_space: bool = False


def service_status(remote: RemoteResource, spec: ServiceSpec | None = None) -> dict[str, Any]:
    """Status fields observed on a remote service, falling back to the spec."""
    spec = spec or ServiceSpec(project="", plan="")
    return {
        "state": remote.state,
        "cloudName": remote.cloud_name or spec.cloud_name,
        "plan": remote.plan or spec.plan or None,
        "maintenanceWindowDow": remote.maintenance_dow or spec.maintenance_window_dow,
        "maintenanceWindowTime": remote.maintenance_time or spec.maintenance_window_time,
        "projectVpcId": remote.project_vpc_id or spec.project_vpc_id,
    }


class GenericServiceAdapter(BaseAdapter):
    """Capability contract for every uniform service kind."""

    def __init__(self, service_kind: ServiceKind) -> None:
        self.service_kind = service_kind
        self.kind = service_kind.kind
        super().__init__()

    def parse_spec(self, descriptor: Descriptor) -> ServiceSpec:
        """Validate the descriptor and parse its spec.

        Raises:
            DescriptorError: On a kind mismatch or a malformed spec
        """
        self.convert(descriptor)
        return ServiceSpec.from_spec(descriptor.spec, self.service_kind.supports_disk_space)

    def exists(self, client: ControlPlaneClient, descriptor: Descriptor) -> bool:
        spec = self.parse_spec(descriptor)
        try:
            client.get_service(spec.project, descriptor.name)
        except RemoteError as e:
            if is_not_found(e):
                return False
            raise
        return True

    def create(self, client: ControlPlaneClient, descriptor: Descriptor) -> dict[str, Any]:
        spec = self.parse_spec(descriptor)
        self.log_info(descriptor, f"Creating {self.service_kind.service_type} service", reason="Creating")
        remote = client.create_service(
            spec.project,
            build_create_request(descriptor.name, self.service_kind.service_type, spec),
        )
        return service_status(remote, spec)

    def update(self, client: ControlPlaneClient, descriptor: Descriptor) -> dict[str, Any]:
        spec = self.parse_spec(descriptor)
        remote = client.update_service(spec.project, descriptor.name, build_update_request(spec))
        return service_status(remote, spec)

    def delete(self, client: ControlPlaneClient, descriptor: Descriptor) -> bool:
        # Teardown only needs the service address
        self.convert(descriptor)
        project = descriptor.spec.get("project")
        if not project:
            raise DescriptorError("spec.project is required")
        if descriptor.spec.get("terminationProtection", False):
            raise RemoteError(
                f"service {descriptor.name} has terminationProtection enabled",
                ErrorKind.FATAL,
            )
        try:
            client.delete_service(project, descriptor.name)
        except RemoteError as e:
            if is_not_found(e):
                return True
            raise

        # The delete was accepted; the service is only gone once it stops resolving.
        try:
            client.get_service(project, descriptor.name)
        except RemoteError as e:
            if is_not_found(e):
                return True
            raise
        return False

    def is_active(self, client: ControlPlaneClient, descriptor: Descriptor) -> bool:
        spec = self.parse_spec(descriptor)
        remote = client.get_service(spec.project, descriptor.name)
        return remote.state == SERVICE_STATE_RUNNING

    def get_secret(self, client: ControlPlaneClient, descriptor: Descriptor) -> SecretPayload:
        spec = self.parse_spec(descriptor)
        remote = client.get_service(spec.project, descriptor.name)
        if remote.state != SERVICE_STATE_RUNNING:
            # Credentials are only read from a snapshot that is itself running
            raise RemoteError(
                f"service {descriptor.name} left {SERVICE_STATE_RUNNING} before its credentials were read",
                ErrorKind.TRANSIENT,
            )
        return SecretPayload(
            name=spec.conn_info_secret_target or descriptor.name,
            data=self.service_kind.secret_mapper(client, spec, remote),
        )

    def check_preconditions(self, client: ControlPlaneClient, descriptor: Descriptor) -> bool:
        spec = self.parse_spec(descriptor)
        try:
            client.get_project(spec.project)
        except RemoteError as e:
            if is_not_found(e):
                self.log_info(descriptor, f"Project {spec.project} not found", reason="ProjectNotFound")
                return False
            raise

        if not spec.project_vpc_id:
            return True

        try:
            vpc = client.get_project_vpc(spec.project, spec.project_vpc_id)
        except RemoteError as e:
            if is_not_found(e):
                self.log_info(descriptor, f"Project VPC {spec.project_vpc_id} not found", reason="VPCNotFound")
                return False
            raise
        return vpc.get("state") == VPC_STATE_ACTIVE

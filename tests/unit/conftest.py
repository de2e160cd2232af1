"""Shared fakes for unit tests: an in-memory descriptor store and control plane."""

from __future__ import annotations

import copy
from typing import Any, Callable
from unittest.mock import patch

import pytest

from aiven_operator.constants import API_GROUP_VERSION, FINALIZER
from aiven_operator.models import Descriptor, ResourceKey
from aiven_operator.services.aiven.models import RemoteDatabase, RemoteResource
from aiven_operator.utils.errors import ConflictError, ErrorKind, RemoteError
from aiven_operator.utils.secrets import prune_empty


def not_found(what: str) -> RemoteError:
    return RemoteError(f"{what} not found", ErrorKind.NOT_FOUND, status_code=404)


class FakeStore:
    """Version-checked in-memory stand-in for DescriptorStore."""

    def __init__(self) -> None:
        self.bodies: dict[ResourceKey, dict[str, Any]] = {}
        self.tokens: dict[tuple[str, str, str], str] = {}
        self.secrets: dict[tuple[str, str], dict[str, str]] = {}
        self.secret_owners: dict[tuple[str, str], dict[str, Any]] = {}
        self.status_writes: list[dict[str, Any]] = []
        self.conflicts = 0

    def put(self, body: dict[str, Any]) -> ResourceKey:
        body = copy.deepcopy(body)
        body["metadata"].setdefault("resourceVersion", "1")
        descriptor = Descriptor.from_body(body)
        self.bodies[descriptor.key] = body
        return descriptor.key

    def get(self, key: ResourceKey) -> Descriptor | None:
        body = self.bodies.get(key)
        return Descriptor.from_body(copy.deepcopy(body)) if body is not None else None

    def _write(self, descriptor: Descriptor, mutate: Callable[[dict[str, Any]], None]) -> Descriptor:
        if self.conflicts:
            self.conflicts -= 1
            raise ConflictError("injected conflict")
        body = self.bodies[descriptor.key]
        metadata = body["metadata"]
        if metadata["resourceVersion"] != descriptor.resource_version:
            raise ConflictError("stale resourceVersion")
        mutate(body)
        metadata["resourceVersion"] = str(int(metadata["resourceVersion"]) + 1)
        if metadata.get("deletionTimestamp") and not metadata.get("finalizers"):
            del self.bodies[descriptor.key]
        return Descriptor.from_body(copy.deepcopy(body))

    def add_finalizer(self, descriptor: Descriptor) -> Descriptor:
        if descriptor.has_finalizer:
            return descriptor
        return self._write(
            descriptor,
            lambda body: body["metadata"].setdefault("finalizers", []).append(FINALIZER),
        )

    def remove_finalizer(self, descriptor: Descriptor) -> Descriptor:
        if not descriptor.has_finalizer:
            return descriptor

        def drop(body: dict[str, Any]) -> None:
            body["metadata"]["finalizers"] = [f for f in body["metadata"]["finalizers"] if f != FINALIZER]

        return self._write(descriptor, drop)

    def patch_status(self, descriptor: Descriptor, status: dict[str, Any]) -> Descriptor:
        self.status_writes.append(copy.deepcopy(status))
        return self._write(descriptor, lambda body: body.setdefault("status", {}).update(copy.deepcopy(status)))

    def read_secret_value(self, namespace: str, name: str, key: str) -> str:
        try:
            return self.tokens[(namespace, name, key)]
        except KeyError:
            raise ValueError(f"Secret '{name}' not found in namespace '{namespace}'") from None

    def upsert_secret(self, namespace: str, name: str, data: dict[str, Any], owner: dict[str, Any]) -> None:
        self.secrets[(namespace, name)] = prune_empty(data)
        self.secret_owners[(namespace, name)] = owner

    def phases(self) -> list[str]:
        return [write["phase"] for write in self.status_writes if "phase" in write]


class FakeControlPlane:
    """In-memory control plane recording every call."""

    def __init__(self) -> None:
        self.projects = {"p1"}
        self.vpcs: dict[tuple[str, str], str] = {}
        self.services: dict[tuple[str, str], RemoteResource] = {}
        self.databases: dict[tuple[str, str], list[RemoteDatabase]] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.errors: dict[str, list[Exception]] = {}
        self.ca_certificate = "-----BEGIN CERTIFICATE-----"

    def _record(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, *args))
        pending = self.errors.get(operation)
        if pending:
            raise pending.pop(0)

    def count(self, operation: str) -> int:
        return sum(1 for call in self.calls if call[0] == operation)

    def mutating_calls(self) -> list[tuple[Any, ...]]:
        return [call for call in self.calls if call[0].split("_")[0] in ("create", "update", "delete")]

    def add_service(self, project: str, name: str, state: str = "RUNNING", service_type: str = "pg") -> RemoteResource:
        service = RemoteResource(
            name=name,
            service_type=service_type,
            state=state,
            plan="startup-4",
            cloud_name="google-europe-west1",
            uri=f"postgres://avnadmin:secret-pw@{name}.aivencloud.com:12345/defaultdb?sslmode=require",
            uri_params={
                "host": f"{name}.aivencloud.com",
                "port": "12345",
                "dbname": "defaultdb",
                "user": "avnadmin",
                "password": "secret-pw",
                "sslmode": "require",
            },
        )
        self.services[(project, name)] = service
        return service

    def get_project(self, project: str) -> dict[str, Any]:
        self._record("get_project", project)
        if project not in self.projects:
            raise not_found(f"project {project}")
        return {"project_name": project}

    def get_project_vpc(self, project: str, vpc_id: str) -> dict[str, Any]:
        self._record("get_project_vpc", project, vpc_id)
        state = self.vpcs.get((project, vpc_id))
        if state is None:
            raise not_found(f"vpc {vpc_id}")
        return {"project_vpc_id": vpc_id, "state": state}

    def get_project_ca(self, project: str) -> str:
        self._record("get_project_ca", project)
        return self.ca_certificate

    def get_service(self, project: str, name: str) -> RemoteResource:
        self._record("get_service", project, name)
        service = self.services.get((project, name))
        if service is None:
            raise not_found(f"service {name}")
        return service

    def create_service(self, project: str, request: dict[str, Any]) -> RemoteResource:
        self._record("create_service", project, request)
        service = self.add_service(
            project, request["service_name"], state="REBUILDING", service_type=request["service_type"]
        )
        service.plan = request["plan"]
        return service

    def update_service(self, project: str, name: str, request: dict[str, Any]) -> RemoteResource:
        self._record("update_service", project, name, request)
        service = self.services.get((project, name))
        if service is None:
            raise not_found(f"service {name}")
        service.plan = request["plan"]
        return service

    def delete_service(self, project: str, name: str) -> None:
        self._record("delete_service", project, name)
        if (project, name) not in self.services:
            raise not_found(f"service {name}")

    def list_databases(self, project: str, service: str) -> list[RemoteDatabase]:
        self._record("list_databases", project, service)
        if (project, service) not in self.services:
            raise not_found(f"service {service}")
        return list(self.databases.get((project, service), []))

    def create_database(self, project: str, service: str, request: dict[str, Any]) -> None:
        self._record("create_database", project, service, request)
        self.databases.setdefault((project, service), []).append(
            RemoteDatabase(
                name=request["database"],
                lc_collate=request.get("lc_collate", "en_US.UTF-8"),
                lc_ctype=request.get("lc_ctype", "en_US.UTF-8"),
            )
        )

    def delete_database(self, project: str, service: str, name: str) -> None:
        self._record("delete_database", project, service, name)
        databases = self.databases.get((project, service), [])
        if not any(db.name == name for db in databases):
            raise not_found(f"database {name}")
        self.databases[(project, service)] = [db for db in databases if db.name != name]


class FakeClientPool:
    """Hands out the fake control plane for any token."""

    def __init__(self, client: FakeControlPlane, default_token: str | None = "default-token") -> None:
        self.client = client
        self.default_token = default_token
        self.tokens: list[str] = []

    def get(self, token: str | None = None) -> FakeControlPlane:
        token = token or self.default_token
        if not token:
            raise ValueError("no Aiven API token")
        self.tokens.append(token)
        return self.client


def build_body(
    kind: str = "PostgreSQL",
    name: str = "p1-db",
    namespace: str = "default",
    spec: dict[str, Any] | None = None,
    status: dict[str, Any] | None = None,
    generation: int = 1,
    finalizers: list[str] | None = None,
    deletion_timestamp: str | None = None,
) -> dict[str, Any]:
    metadata: dict[str, Any] = {
        "name": name,
        "namespace": namespace,
        "uid": f"uid-{name}",
        "generation": generation,
        "resourceVersion": "1",
        "finalizers": list(finalizers or []),
    }
    if deletion_timestamp:
        metadata["deletionTimestamp"] = deletion_timestamp
    return {
        "apiVersion": API_GROUP_VERSION,
        "kind": kind,
        "metadata": metadata,
        "spec": dict(spec if spec is not None else {"project": "p1", "plan": "startup-4"}),
        "status": dict(status or {}),
    }


@pytest.fixture(autouse=True)
def kopf_event():
    """Capture events instead of posting them through kopf."""
    with patch("aiven_operator.utils.events.kopf.event") as mock_event:
        yield mock_event


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def control_plane() -> FakeControlPlane:
    return FakeControlPlane()


@pytest.fixture
def client_pool(control_plane: FakeControlPlane) -> FakeClientPool:
    return FakeClientPool(control_plane)


@pytest.fixture
def make_body() -> Callable[..., dict[str, Any]]:
    return build_body


@pytest.fixture
def make_descriptor() -> Callable[..., Descriptor]:
    def factory(**kwargs: Any) -> Descriptor:
        return Descriptor.from_body(build_body(**kwargs))

    return factory

"""Descriptor models parsed from custom resource bodies."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from .constants import DEFAULT_TOKEN_KEY, FINALIZER
from .utils.errors import DescriptorError


@dataclass(frozen=True)
class ResourceKey:
    """Identity of a descriptor in the work queue."""

    kind: str
    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.kind}/{self.namespace}/{self.name}"


@dataclass(frozen=True)
class AuthSecretReference:
    """Reference to the secret holding the control-plane API token."""

    name: str
    key: str = DEFAULT_TOKEN_KEY

    @classmethod
    def from_spec(cls, spec: dict[str, Any]) -> AuthSecretReference | None:
        ref = spec.get("authSecretRef") or {}
        if not ref.get("name"):
            return None
        return cls(name=ref["name"], key=ref.get("key") or DEFAULT_TOKEN_KEY)


@dataclass
class Descriptor:
    """A custom resource describing one remotely provisioned resource."""

    api_version: str
    kind: str
    namespace: str
    name: str
    uid: str
    generation: int
    resource_version: str | None
    spec: dict[str, Any]
    status: dict[str, Any]
    finalizers: list[str] = field(default_factory=list)
    deletion_timestamp: str | None = None
    owner_references: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_body(cls, body: dict[str, Any]) -> Descriptor:
        """Parse a custom object body as returned by the Kubernetes API."""
        metadata = body.get("metadata") or {}
        return cls(
            api_version=body.get("apiVersion", ""),
            kind=body.get("kind", ""),
            namespace=metadata.get("namespace", "default"),
            name=metadata.get("name", ""),
            uid=metadata.get("uid", ""),
            generation=metadata.get("generation") or 0,
            resource_version=metadata.get("resourceVersion"),
            spec=dict(body.get("spec") or {}),
            status=dict(body.get("status") or {}),
            finalizers=list(metadata.get("finalizers") or []),
            deletion_timestamp=metadata.get("deletionTimestamp"),
            owner_references=list(metadata.get("ownerReferences") or []),
        )

    @property
    def key(self) -> ResourceKey:
        return ResourceKey(self.kind, self.namespace, self.name)

    @property
    def deleting(self) -> bool:
        return self.deletion_timestamp is not None

    @property
    def has_finalizer(self) -> bool:
        return FINALIZER in self.finalizers

    @property
    def conditions(self) -> list[dict[str, Any]]:
        return list(self.status.get("conditions") or [])

    def reference(self) -> dict[str, Any]:
        """Minimal body used for events and owner references."""
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
                "uid": self.uid,
            },
        }


_DISK_SPACE_RE = re.compile(r"^\s*(\d+)\s*(GiB|G|MiB|M)?\s*$", re.IGNORECASE)


def parse_disk_space(value: str | None) -> int | None:
    """Convert a disk size such as ``"90GiB"`` to megabytes.

    Raises:
        DescriptorError: If the value is not a recognised size
    """
    if value is None or value == "":
        return None
    match = _DISK_SPACE_RE.match(str(value))
    if not match:
        raise DescriptorError(f"invalid diskSpace {value!r}, expected e.g. '90GiB'")
    amount = int(match.group(1))
    unit = (match.group(2) or "GiB").lower()
    if unit in ("gib", "g"):
        return amount * 1024
    return amount


@dataclass(frozen=True)
class ServiceSpec:
    """Desired state shared by every uniform service kind."""

    project: str
    plan: str
    cloud_name: str | None = None
    maintenance_window_dow: str | None = None
    maintenance_window_time: str | None = None
    project_vpc_id: str | None = None
    user_config: dict[str, Any] = field(default_factory=dict)
    disk_space_mb: int | None = None
    termination_protection: bool = False
    conn_info_secret_target: str | None = None

    @classmethod
    def from_spec(cls, spec: dict[str, Any], supports_disk_space: bool = False) -> ServiceSpec:
        """Validate and parse a service spec.

        Raises:
            DescriptorError: If required fields are missing or malformed
        """
        project = spec.get("project")
        plan = spec.get("plan")
        if not project:
            raise DescriptorError("spec.project is required")
        if not plan:
            raise DescriptorError("spec.plan is required")

        user_config = spec.get("userConfig") or {}
        if not isinstance(user_config, dict):
            raise DescriptorError("spec.userConfig must be an object")

        disk_space = spec.get("diskSpace")
        if disk_space and not supports_disk_space:
            raise DescriptorError("spec.diskSpace is not supported for this kind")

        return cls(
            project=project,
            plan=plan,
            cloud_name=spec.get("cloudName") or None,
            maintenance_window_dow=spec.get("maintenanceWindowDow") or None,
            maintenance_window_time=spec.get("maintenanceWindowTime") or None,
            project_vpc_id=spec.get("projectVpcId") or None,
            user_config=dict(user_config),
            disk_space_mb=parse_disk_space(disk_space) if supports_disk_space else None,
            termination_protection=bool(spec.get("terminationProtection", False)),
            conn_info_secret_target=(spec.get("connInfoSecretTarget") or {}).get("name") or None,
        )

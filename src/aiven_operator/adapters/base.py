"""Base adapter class with the capability contract shared by all kinds."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ..constants import CONTROLLER_NAME
from ..logging import log_resource_event
from ..models import AuthSecretReference, Descriptor
from ..services.aiven.base import ControlPlaneClient
from ..utils.errors import DescriptorError, sanitize_exception


@dataclass
class SecretPayload:
    """Connection details to store in the generated secret."""

    name: str
    data: dict[str, Any] = field(default_factory=dict)


class BaseAdapter:
    """Translation between one descriptor kind and the control plane.

    Adapters hold no per-resource state; one instance serves every worker.
    Every capability takes the control-plane client and the descriptor, and
    raises ``RemoteError`` or ``DescriptorError`` on failure.
    """

    kind: str = ""

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"{__name__}.{self.kind or type(self).__name__}")

    def convert(self, descriptor: Descriptor) -> Descriptor:
        """Check the descriptor belongs to this adapter.

        Raises:
            DescriptorError: On a kind mismatch
        """
        if descriptor.kind != self.kind:
            raise DescriptorError(f"cannot handle {descriptor.kind!r} with the {self.kind} adapter")
        return descriptor

    def exists(self, client: ControlPlaneClient, descriptor: Descriptor) -> bool:
        raise NotImplementedError

    def create(self, client: ControlPlaneClient, descriptor: Descriptor) -> dict[str, Any]:
        """Create the remote resource; return the status fields to persist."""
        raise NotImplementedError

    def update(self, client: ControlPlaneClient, descriptor: Descriptor) -> dict[str, Any]:
        """Apply the spec to an existing remote resource; return status fields."""
        raise NotImplementedError

    def delete(self, client: ControlPlaneClient, descriptor: Descriptor) -> bool:
        """Request teardown; return True only once the remote side reports it absent."""
        raise NotImplementedError

    def is_active(self, client: ControlPlaneClient, descriptor: Descriptor) -> bool:
        raise NotImplementedError

    def get_secret(self, client: ControlPlaneClient, descriptor: Descriptor) -> SecretPayload | None:
        """Connection details for the generated secret, or None for kinds without one."""
        return None

    def check_preconditions(self, client: ControlPlaneClient, descriptor: Descriptor) -> bool:
        return True

    def get_secret_reference(self, descriptor: Descriptor) -> AuthSecretReference | None:
        return AuthSecretReference.from_spec(descriptor.spec)

    def log_info(self, descriptor: Descriptor, message: str, reason: str = "Info", **kwargs: Any) -> None:
        """Log an info-level structured log message."""
        log_resource_event(
            self.logger,
            controller=CONTROLLER_NAME,
            resource_kind=self.kind,
            resource_name=descriptor.name,
            namespace=descriptor.namespace,
            uid=descriptor.uid,
            event="info",
            reason=reason,
            message=message,
            **kwargs,
        )

    def log_warning(
        self,
        descriptor: Descriptor,
        message: str,
        reason: str = "Warning",
        error: Exception | None = None,
        **kwargs: Any,
    ) -> None:
        """Log a warning-level structured log message."""
        if error is not None:
            kwargs["error"] = sanitize_exception(error)
            kwargs["error_type"] = type(error).__name__
        log_resource_event(
            self.logger,
            controller=CONTROLLER_NAME,
            resource_kind=self.kind,
            resource_name=descriptor.name,
            namespace=descriptor.namespace,
            uid=descriptor.uid,
            event="warning",
            reason=reason,
            message=message,
            level=logging.WARNING,
            **kwargs,
        )

"""Access to descriptors and secrets in the Kubernetes API.

Every descriptor write carries the ``resourceVersion`` it was computed from,
so a write against a stale copy fails with ``ConflictError`` instead of
silently overwriting a newer version.
"""

from __future__ import annotations

import time
from typing import Any

from kubernetes import client, config

from . import metrics
from .constants import API_GROUP, API_VERSION, FINALIZER, PLURALS
from .models import Descriptor, ResourceKey
from .utils.errors import ConflictError
from .utils.secrets import get_secret_value, synthesize_secret


def load_kubernetes_config() -> None:
    """Load in-cluster config, falling back to the local kubeconfig."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()


class DescriptorStore:
    """Version-stamped reads and writes of descriptors and their secrets."""

    def __init__(
        self,
        custom_api: client.CustomObjectsApi | None = None,
        core_api: client.CoreV1Api | None = None,
    ) -> None:
        self.custom_api = custom_api or client.CustomObjectsApi()
        self.core_api = core_api or client.CoreV1Api()

    @staticmethod
    def _plural(kind: str) -> str:
        try:
            return PLURALS[kind]
        except KeyError:
            raise ValueError(f"unknown kind {kind!r}") from None

    def _call(self, operation: str, func: Any, **kwargs: Any) -> Any:
        start_time = time.time()
        try:
            result = func(**kwargs)
        except client.exceptions.ApiException as e:
            result_label = "not_found" if e.status == 404 else "conflict" if e.status == 409 else "error"
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result=result_label).inc()
            if e.status == 409:
                raise ConflictError(f"{operation} conflict: {e.reason}") from e
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)
        metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
        return result

    def get(self, key: ResourceKey) -> Descriptor | None:
        """Read the latest version of a descriptor.

        Returns:
            The descriptor, or None if it no longer exists
        """
        try:
            body = self._call(
                "get_descriptor",
                self.custom_api.get_namespaced_custom_object,
                group=API_GROUP,
                version=API_VERSION,
                namespace=key.namespace,
                plural=self._plural(key.kind),
                name=key.name,
            )
        except client.exceptions.ApiException as e:
            if e.status == 404:
                return None
            raise
        return Descriptor.from_body(body)

    def set_finalizers(self, descriptor: Descriptor, finalizers: list[str]) -> Descriptor:
        """Replace the finalizer list, guarded by the descriptor's version.

        Raises:
            ConflictError: If the descriptor changed since it was read
        """
        body = self._call(
            "patch_finalizers",
            self.custom_api.patch_namespaced_custom_object,
            group=API_GROUP,
            version=API_VERSION,
            namespace=descriptor.namespace,
            plural=self._plural(descriptor.kind),
            name=descriptor.name,
            body={
                "metadata": {
                    "finalizers": finalizers or None,
                    "resourceVersion": descriptor.resource_version,
                }
            },
        )
        return Descriptor.from_body(body)

    def add_finalizer(self, descriptor: Descriptor) -> Descriptor:
        if descriptor.has_finalizer:
            return descriptor
        return self.set_finalizers(descriptor, [*descriptor.finalizers, FINALIZER])

    def remove_finalizer(self, descriptor: Descriptor) -> Descriptor:
        if not descriptor.has_finalizer:
            return descriptor
        return self.set_finalizers(descriptor, [f for f in descriptor.finalizers if f != FINALIZER])

    def patch_status(self, descriptor: Descriptor, status: dict[str, Any]) -> Descriptor:
        """Merge fields into the status subresource, guarded by version.

        Raises:
            ConflictError: If the descriptor changed since it was read
        """
        body = self._call(
            "patch_status",
            self.custom_api.patch_namespaced_custom_object_status,
            group=API_GROUP,
            version=API_VERSION,
            namespace=descriptor.namespace,
            plural=self._plural(descriptor.kind),
            name=descriptor.name,
            body={
                "metadata": {"resourceVersion": descriptor.resource_version},
                "status": status,
            },
        )
        return Descriptor.from_body(body)

    def read_secret_value(self, namespace: str, name: str, key: str) -> str:
        """Read one decoded value of a secret.

        Raises:
            ValueError: If the secret or key is missing
        """
        return get_secret_value(self.core_api, namespace, name, key)

    def upsert_secret(
        self,
        namespace: str,
        name: str,
        data: dict[str, Any],
        owner: dict[str, Any],
    ) -> client.V1Secret:
        """Synthesize and upsert the generated secret of a descriptor."""
        return synthesize_secret(self.core_api, namespace, name, data, owner)

"""Utilities for managing Kubernetes secrets.

The generated connection secret of a descriptor is produced here: the flat
credential mapping handed over by an adapter is pruned of empty values,
wrapped into a ``V1Secret`` owned by the descriptor and upserted in one
write, so a reader never sees a half-written secret.
"""

from __future__ import annotations

import base64
import logging
from typing import Any

from kubernetes import client

from ..constants import CONTROLLER_NAME, FIELD_MANAGER, LABEL_APP, LABEL_MANAGED_BY

logger = logging.getLogger(__name__)


def _decode(value: str | bytes) -> str:
    # Handle both string and bytes (different versions of kubernetes client)
    if isinstance(value, bytes):
        return value.decode("utf-8")
    try:
        return base64.b64decode(value, validate=True).decode("utf-8")
    except (ValueError, UnicodeDecodeError):
        # Not base64, assume it's already decoded
        return value


def get_secret_value(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
    key: str,
) -> str:
    """Get a value from a Kubernetes secret.

    Args:
        api: Kubernetes API client
        namespace: Namespace of the secret
        secret_name: Name of the secret
        key: Key in the secret

    Returns:
        Secret value

    Raises:
        ValueError: If secret or key not found, or the value is empty
    """
    try:
        secret = api.read_namespaced_secret(name=secret_name, namespace=namespace)
    except client.exceptions.ApiException as e:
        if e.status == 404:
            raise ValueError(f"Secret '{secret_name}' not found in namespace '{namespace}'") from e
        raise

    data = secret.data or {}
    if key not in data:
        raise ValueError(f"Key '{key}' not found in secret '{secret_name}'")

    value = _decode(data[key]).strip()
    if not value:
        raise ValueError(f"Key '{key}' in secret '{secret_name}' is empty")
    return value


def prune_empty(data: dict[str, Any]) -> dict[str, str]:
    """Drop entries whose value is None or an empty string.

    A credential the remote side did not return must be absent from the
    secret rather than present and blank.
    """
    return {key: str(value) for key, value in data.items() if value is not None and str(value) != ""}


def build_owner_reference(body: dict[str, Any]) -> dict[str, Any]:
    """Build a controller owner reference pointing at a descriptor body."""
    metadata = body.get("metadata", {})
    return {
        "apiVersion": body["apiVersion"],
        "kind": body["kind"],
        "name": metadata["name"],
        "uid": metadata["uid"],
        "controller": True,
        "blockOwnerDeletion": True,
    }


def build_secret(
    namespace: str,
    secret_name: str,
    data: dict[str, Any],
    owner: dict[str, Any],
) -> client.V1Secret:
    """Build a connection secret owned by the given descriptor body.

    Args:
        namespace: Namespace for the secret
        secret_name: Name of the secret
        data: Flat credential mapping, empty values are dropped
        owner: Descriptor body (apiVersion, kind, metadata) owning the secret

    Returns:
        Secret object ready for create or replace
    """
    return client.V1Secret(
        metadata=client.V1ObjectMeta(
            name=secret_name,
            namespace=namespace,
            labels={
                LABEL_MANAGED_BY: CONTROLLER_NAME,
                LABEL_APP: owner.get("metadata", {}).get("name", secret_name),
            },
            owner_references=[build_owner_reference(owner)],
        ),
        type="Opaque",
        string_data=prune_empty(data),
    )


def upsert_secret(api: client.CoreV1Api, secret: client.V1Secret) -> client.V1Secret:
    """Create the secret, or replace it if it already exists.

    Replacing (rather than patching) drops keys that are no longer produced.
    Failures propagate to the caller; there is no retry here.
    """
    namespace = secret.metadata.namespace
    name = secret.metadata.name
    try:
        existing = api.read_namespaced_secret(name=name, namespace=namespace)
    except client.exceptions.ApiException as e:
        if e.status != 404:
            raise
        return api.create_namespaced_secret(
            namespace=namespace,
            body=secret,
            field_manager=FIELD_MANAGER,
        )

    secret.metadata.resource_version = existing.metadata.resource_version
    return api.replace_namespaced_secret(
        name=name,
        namespace=namespace,
        body=secret,
        field_manager=FIELD_MANAGER,
    )


def synthesize_secret(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
    data: dict[str, Any],
    owner: dict[str, Any],
) -> client.V1Secret:
    """Build and upsert the generated connection secret for a descriptor.

    Args:
        api: Kubernetes API client
        namespace: Namespace for the secret
        secret_name: Name of the secret
        data: Flat credential mapping from the adapter
        owner: Descriptor body owning the secret

    Returns:
        The stored secret
    """
    secret = build_secret(namespace, secret_name, data, owner)
    logger.debug(
        "Upserting secret %s/%s with keys %s",
        namespace,
        secret_name,
        sorted(secret.string_data),
    )
    return upsert_secret(api, secret)

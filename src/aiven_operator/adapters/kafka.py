"""Kafka service kind."""

from __future__ import annotations

from typing import Any

from ..constants import KIND_KAFKA
from ..models import ServiceSpec
from ..services.aiven.base import ControlPlaneClient
from ..services.aiven.models import RemoteResource
from .service import GenericServiceAdapter, ServiceKind


def kafka_secret(client: ControlPlaneClient, spec: ServiceSpec, remote: RemoteResource) -> dict[str, Any]:
    """Map a Kafka service onto broker address, SASL user and TLS material.

    The project CA certificate comes from a separate call.
    """
    user = remote.primary_user
    return {
        "HOST": remote.uri_params.get("host"),
        "PORT": remote.uri_params.get("port"),
        "USERNAME": user.username if user else None,
        "PASSWORD": user.password if user else None,
        "ACCESS_CERT": remote.connection_info.get("kafka_access_cert"),
        "ACCESS_KEY": remote.connection_info.get("kafka_access_key"),
        "CA_CERT": client.get_project_ca(spec.project),
    }


KAFKA = ServiceKind(
    kind=KIND_KAFKA,
    service_type="kafka",
    secret_mapper=kafka_secret,
    supports_disk_space=True,
)


def new_kafka_adapter() -> GenericServiceAdapter:
    return GenericServiceAdapter(KAFKA)

"""Redis service kind."""

from __future__ import annotations

from typing import Any

from ..constants import KIND_REDIS
from ..models import ServiceSpec
from ..services.aiven.base import ControlPlaneClient
from ..services.aiven.models import RemoteResource
from .service import GenericServiceAdapter, ServiceKind


def redis_secret(client: ControlPlaneClient, spec: ServiceSpec, remote: RemoteResource) -> dict[str, Any]:
    params = remote.uri_params
    return {
        "HOST": params.get("host"),
        "PORT": params.get("port"),
        "USER": params.get("user"),
        "PASSWORD": params.get("password"),
    }


REDIS = ServiceKind(kind=KIND_REDIS, service_type="redis", secret_mapper=redis_secret)


def new_redis_adapter() -> GenericServiceAdapter:
    return GenericServiceAdapter(REDIS)

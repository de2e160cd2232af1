"""MySQL service kind."""

from __future__ import annotations

from typing import Any

from ..constants import KIND_MYSQL
from ..models import ServiceSpec
from ..services.aiven.base import ControlPlaneClient
from ..services.aiven.models import RemoteResource
from .service import GenericServiceAdapter, ServiceKind


def mysql_secret(client: ControlPlaneClient, spec: ServiceSpec, remote: RemoteResource) -> dict[str, Any]:
    params = remote.uri_params
    return {
        "MYSQL_HOST": params.get("host"),
        "MYSQL_PORT": params.get("port"),
        "MYSQL_DATABASE": params.get("dbname"),
        "MYSQL_USER": params.get("user"),
        "MYSQL_PASSWORD": params.get("password"),
        "MYSQL_SSL_MODE": params.get("ssl-mode"),
        "MYSQL_URI": remote.uri,
    }


MYSQL = ServiceKind(
    kind=KIND_MYSQL,
    service_type="mysql",
    secret_mapper=mysql_secret,
    supports_disk_space=True,
)


def new_mysql_adapter() -> GenericServiceAdapter:
    return GenericServiceAdapter(MYSQL)

"""PostgreSQL service kind."""

from __future__ import annotations

from typing import Any

from ..constants import KIND_POSTGRESQL
from ..models import ServiceSpec
from ..services.aiven.base import ControlPlaneClient
from ..services.aiven.models import RemoteResource
from .service import GenericServiceAdapter, ServiceKind


def postgresql_secret(client: ControlPlaneClient, spec: ServiceSpec, remote: RemoteResource) -> dict[str, Any]:
    """Map a PostgreSQL service onto libpq-style environment variables."""
    params = remote.uri_params
    return {
        "PGHOST": params.get("host"),
        "PGPORT": params.get("port"),
        "PGDATABASE": params.get("dbname"),
        "PGUSER": params.get("user"),
        "PGPASSWORD": params.get("password"),
        "PGSSLMODE": params.get("sslmode"),
        "DATABASE_URI": remote.uri,
    }


POSTGRESQL = ServiceKind(
    kind=KIND_POSTGRESQL,
    service_type="pg",
    secret_mapper=postgresql_secret,
    supports_disk_space=True,
)


def new_postgresql_adapter() -> GenericServiceAdapter:
    return GenericServiceAdapter(POSTGRESQL)

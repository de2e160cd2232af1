"""Resource adapters and the kind registry."""

from __future__ import annotations

from typing import Callable

from ..constants import KIND_DATABASE, KIND_KAFKA, KIND_MYSQL, KIND_POSTGRESQL, KIND_REDIS
from .base import BaseAdapter, SecretPayload
from .database import DatabaseAdapter
from .kafka import new_kafka_adapter
from .mysql import new_mysql_adapter
from .postgresql import new_postgresql_adapter
from .redis import new_redis_adapter
from .service import GenericServiceAdapter, ServiceKind

AdapterFactory = Callable[[str], BaseAdapter]

ADAPTER_CONSTRUCTORS: dict[str, Callable[[], BaseAdapter]] = {
    KIND_POSTGRESQL: new_postgresql_adapter,
    KIND_KAFKA: new_kafka_adapter,
    KIND_REDIS: new_redis_adapter,
    KIND_MYSQL: new_mysql_adapter,
    KIND_DATABASE: DatabaseAdapter,
}


class AdapterRegistry:
    """Kind to adapter lookup, built once at startup.

    Adapters are stateless, so each kind is constructed once and shared.
    """

    def __init__(self, constructors: dict[str, Callable[[], BaseAdapter]] | None = None) -> None:
        constructors = ADAPTER_CONSTRUCTORS if constructors is None else constructors
        self._adapters = {kind: constructor() for kind, constructor in constructors.items()}

    @property
    def kinds(self) -> list[str]:
        return sorted(self._adapters)

    def __contains__(self, kind: str) -> bool:
        return kind in self._adapters

    def __call__(self, kind: str) -> BaseAdapter:
        """Resolve the adapter for a kind.

        Raises:
            KeyError: If no adapter is registered for the kind
        """
        try:
            return self._adapters[kind]
        except KeyError:
            raise KeyError(f"no adapter registered for kind {kind!r}") from None


__all__ = [
    "ADAPTER_CONSTRUCTORS",
    "AdapterFactory",
    "AdapterRegistry",
    "BaseAdapter",
    "DatabaseAdapter",
    "GenericServiceAdapter",
    "SecretPayload",
    "ServiceKind",
]

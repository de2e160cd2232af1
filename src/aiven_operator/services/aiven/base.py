"""Control-plane client interface."""

from __future__ import annotations

from typing import Any, Protocol

from .models import RemoteDatabase, RemoteResource


class ControlPlaneClient(Protocol):
    """Protocol defining the control-plane operations adapters rely on.

    Every method raises ``RemoteError``; a missing object is reported with
    ``ErrorKind.NOT_FOUND``.
    """

    def get_project(self, project: str) -> dict[str, Any]:
        """Get a project."""
        ...

    def get_project_vpc(self, project: str, vpc_id: str) -> dict[str, Any]:
        """Get a project VPC."""
        ...

    def get_project_ca(self, project: str) -> str:
        """Get the project CA certificate (PEM)."""
        ...

    def get_service(self, project: str, name: str) -> RemoteResource:
        """Get a service."""
        ...

    def create_service(self, project: str, request: dict[str, Any]) -> RemoteResource:
        """Create a service."""
        ...

    def update_service(self, project: str, name: str, request: dict[str, Any]) -> RemoteResource:
        """Update a service."""
        ...

    def delete_service(self, project: str, name: str) -> None:
        """Delete a service."""
        ...

    def list_databases(self, project: str, service: str) -> list[RemoteDatabase]:
        """List logical databases of a service."""
        ...

    def create_database(self, project: str, service: str, request: dict[str, Any]) -> None:
        """Create a logical database."""
        ...

    def delete_database(self, project: str, service: str, name: str) -> None:
        """Delete a logical database."""
        ...

"""Aiven control-plane client."""

from .base import ControlPlaneClient
from .client import AivenClient, AivenClientPool
from .models import RemoteDatabase, RemoteResource, ServiceUser

__all__ = [
    "AivenClient",
    "AivenClientPool",
    "ControlPlaneClient",
    "RemoteDatabase",
    "RemoteResource",
    "ServiceUser",
]

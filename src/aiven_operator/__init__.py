"""Kubernetes operator reconciling Aiven services from custom resources."""

__version__ = "0.1.0"

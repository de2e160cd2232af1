"""Aiven control-plane client implementation."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any
from urllib.parse import quote

import httpx

from ... import metrics
from ...utils.errors import ErrorKind, RemoteError, classify_status, sanitize_error_message
from ...utils.rate_limit import RateLimiter, is_rate_limit_status
from .models import RemoteDatabase, RemoteResource

logger = logging.getLogger(__name__)

USER_AGENT = "aiven-operator-python"


def _path(*parts: str) -> str:
    return "/".join(quote(part, safe="") for part in parts)


class AivenClient:
    """HTTP client for the Aiven REST API."""

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.aiven.io",
        rate_limiter: RateLimiter | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: API token
            base_url: Control-plane base URL
            rate_limiter: Limiter shared with every other client of the pool
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests use ``httpx.MockTransport``)
        """
        self.base_url = base_url.rstrip("/")
        self.rate_limiter = rate_limiter
        self._http = httpx.Client(
            base_url=self.base_url,
            headers={
                "Authorization": f"aivenv1 {token}",
                "User-Agent": USER_AGENT,
            },
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def _request(
        self,
        method: str,
        path: str,
        operation: str,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Issue one API call and classify failures.

        Raises:
            RemoteError: On any non-2xx response or transport failure
        """
        if self.rate_limiter is not None and self.rate_limiter.acquire() > 0:
            metrics.rate_limit_hits_total.labels(api_type="aiven").inc()

        start_time = time.time()
        try:
            response = self._http.request(method, f"/v1/{path}", json=json)
        except httpx.HTTPError as e:
            metrics.api_call_total.labels(api_type="aiven", operation=operation, result="error").inc()
            raise RemoteError(
                f"{operation} failed: {sanitize_error_message(str(e))}",
                ErrorKind.TRANSIENT,
            ) from e
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="aiven", operation=operation).observe(duration)

        if response.is_success:
            metrics.api_call_total.labels(api_type="aiven", operation=operation, result="success").inc()
            if not response.content:
                return {}
            return response.json()

        kind = classify_status(response.status_code)
        result = "not_found" if kind is ErrorKind.NOT_FOUND else "error"
        metrics.api_call_total.labels(api_type="aiven", operation=operation, result=result).inc()
        message = self._error_message(response)
        if is_rate_limit_status(response.status_code, message):
            metrics.rate_limit_hits_total.labels(api_type="aiven").inc()
        if kind is not ErrorKind.NOT_FOUND:
            logger.warning(f"Aiven API {operation} returned {response.status_code}: {message}")
        raise RemoteError(
            f"{operation} failed with status {response.status_code}: {message}",
            kind,
            status_code=response.status_code,
        )

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return sanitize_error_message(response.text[:200])
        if isinstance(body, dict):
            return sanitize_error_message(str(body.get("message") or body.get("errors") or body))
        return sanitize_error_message(str(body))

    def get_project(self, project: str) -> dict[str, Any]:
        """Get a project."""
        return self._request("GET", _path("project", project), "get_project").get("project", {})

    def get_project_vpc(self, project: str, vpc_id: str) -> dict[str, Any]:
        """Get a project VPC."""
        return self._request("GET", _path("project", project, "vpcs", vpc_id), "get_project_vpc")

    def get_project_ca(self, project: str) -> str:
        """Get the project CA certificate (PEM)."""
        return self._request("GET", _path("project", project, "kms", "ca"), "get_project_ca").get(
            "certificate", ""
        )

    def get_service(self, project: str, name: str) -> RemoteResource:
        """Get a service."""
        body = self._request("GET", _path("project", project, "service", name), "get_service")
        return RemoteResource.from_api(body.get("service", {}))

    def create_service(self, project: str, request: dict[str, Any]) -> RemoteResource:
        """Create a service."""
        body = self._request("POST", _path("project", project, "service"), "create_service", json=request)
        return RemoteResource.from_api(body.get("service", {}))

    def update_service(self, project: str, name: str, request: dict[str, Any]) -> RemoteResource:
        """Update a service."""
        body = self._request(
            "PUT", _path("project", project, "service", name), "update_service", json=request
        )
        return RemoteResource.from_api(body.get("service", {}))

    def delete_service(self, project: str, name: str) -> None:
        """Delete a service."""
        self._request("DELETE", _path("project", project, "service", name), "delete_service")

    def list_databases(self, project: str, service: str) -> list[RemoteDatabase]:
        """List logical databases of a service."""
        body = self._request("GET", _path("project", project, "service", service, "db"), "list_databases")
        return [RemoteDatabase.from_api(item) for item in body.get("databases", [])]

    def create_database(self, project: str, service: str, request: dict[str, Any]) -> None:
        """Create a logical database."""
        self._request(
            "POST", _path("project", project, "service", service, "db"), "create_database", json=request
        )

    def delete_database(self, project: str, service: str, name: str) -> None:
        """Delete a logical database."""
        self._request(
            "DELETE", _path("project", project, "service", service, "db", name), "delete_database"
        )


class AivenClientPool:
    """Clients keyed by API token, all sharing one rate limiter.

    ``get(None)`` returns the client for the operator-wide default token.
    """

    def __init__(
        self,
        base_url: str = "https://api.aiven.io",
        default_token: str | None = None,
        rate_limit_per_second: float = 5.0,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.default_token = default_token
        self.timeout = timeout
        self.rate_limiter = RateLimiter(rate_limit_per_second)
        self._transport = transport
        self._clients: dict[str, AivenClient] = {}
        self._lock = threading.Lock()

    def get(self, token: str | None = None) -> AivenClient:
        """Return the shared client for a token.

        Raises:
            ValueError: If no token is given and no default token is configured
        """
        token = token or self.default_token
        if not token:
            raise ValueError("no Aiven API token: set AIVEN_TOKEN or spec.authSecretRef")
        with self._lock:
            client = self._clients.get(token)
            if client is None:
                client = AivenClient(
                    token,
                    base_url=self.base_url,
                    rate_limiter=self.rate_limiter,
                    timeout=self.timeout,
                    transport=self._transport,
                )
                self._clients[token] = client
            return client

    def close(self) -> None:
        with self._lock:
            for client in self._clients.values():
                client.close()
            self._clients.clear()

"""Health check and metrics endpoint for the operator."""

from __future__ import annotations

import threading
from typing import Any, Callable

from prometheus_client import make_wsgi_app
from werkzeug.serving import make_server
from werkzeug.wrappers import Request, Response


def _json_response(body: str, status: int) -> Response:
    return Response(body, mimetype="application/json", status=status)


def create_combined_wsgi_app(readiness_check: Callable[[], bool] | None = None) -> Any:
    """Create a WSGI app that combines metrics and health check endpoints.

    Args:
        readiness_check: Callable reporting whether the operator can do work;
            /readyz answers 503 while it returns False

    Returns:
        Combined WSGI application
    """
    metrics_app = make_wsgi_app()

    def combined_app(environ: dict[str, Any], start_response: Any) -> Any:
        """WSGI app that routes /healthz and /readyz, delegates /metrics to prometheus."""
        path = Request(environ).path

        if path == "/healthz":
            return _json_response('{"status":"ok"}', 200)(environ, start_response)
        if path == "/readyz":
            if readiness_check is None or readiness_check():
                return _json_response('{"status":"ready"}', 200)(environ, start_response)
            return _json_response('{"status":"not ready"}', 503)(environ, start_response)
        # Delegate all other paths (including /metrics) to prometheus app
        return metrics_app(environ, start_response)

    return combined_app


def start_http_server(port: int, readiness_check: Callable[[], bool] | None = None) -> Any:
    """Serve metrics and health endpoints from a background thread.

    Returns:
        The werkzeug server, so callers can shut it down
    """
    server = make_server("", port, create_combined_wsgi_app(readiness_check), threaded=True)
    thread = threading.Thread(target=server.serve_forever, name="metrics-server", daemon=True)
    thread.start()
    return server

"""Request builders for control-plane calls."""

from .service import build_create_request, build_maintenance_window, build_update_request

__all__ = ["build_create_request", "build_maintenance_window", "build_update_request"]

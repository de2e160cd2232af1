"""Runtime configuration for the Aiven Operator."""

from __future__ import annotations

import os
from dataclasses import dataclass


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


@dataclass(frozen=True)
class EngineTimings:
    """Requeue intervals and backoff bounds used by the reconciliation engine."""

    resync_interval: float = 3600.0
    poll_interval: float = 10.0
    precondition_interval: float = 15.0
    delete_retry_interval: float = 10.0
    backoff_base: float = 5.0
    backoff_max: float = 300.0
    degraded_after: int = 8
    reconcile_timeout: float = 120.0


@dataclass(frozen=True)
class OperatorConfig:
    """Operator configuration, read from the environment."""

    api_url: str = "https://api.aiven.io"
    default_token: str | None = None
    rate_limit_per_second: float = 5.0
    request_timeout: float = 30.0
    workers: int = 4
    metrics_port: int = 8080
    watch_namespace: str | None = None
    timings: EngineTimings = EngineTimings()

    @classmethod
    def from_env(cls) -> OperatorConfig:
        """Build configuration from environment variables.

        Raises:
            ValueError: If a numeric variable cannot be parsed or is out of range
        """
        timings = EngineTimings(
            resync_interval=_env_float("RESYNC_INTERVAL_SECONDS", 3600.0),
            poll_interval=_env_float("POLL_INTERVAL_SECONDS", 10.0),
            precondition_interval=_env_float("PRECONDITION_INTERVAL_SECONDS", 15.0),
            delete_retry_interval=_env_float("DELETE_RETRY_INTERVAL_SECONDS", 10.0),
            backoff_base=_env_float("BACKOFF_BASE_SECONDS", 5.0),
            backoff_max=_env_float("BACKOFF_MAX_SECONDS", 300.0),
            degraded_after=_env_int("BACKOFF_DEGRADED_AFTER", 8),
            reconcile_timeout=_env_float("RECONCILE_TIMEOUT_SECONDS", 120.0),
        )
        config = cls(
            api_url=os.getenv("AIVEN_API_URL", "https://api.aiven.io").rstrip("/"),
            default_token=os.getenv("AIVEN_TOKEN") or None,
            rate_limit_per_second=_env_float("AIVEN_RATE_LIMIT_PER_SECOND", 5.0),
            request_timeout=_env_float("AIVEN_REQUEST_TIMEOUT_SECONDS", 30.0),
            workers=_env_int("OPERATOR_WORKERS", 4),
            metrics_port=_env_int("METRICS_PORT", 8080),
            watch_namespace=os.getenv("WATCH_NAMESPACE") or None,
            timings=timings,
        )
        if config.workers < 1:
            raise ValueError("OPERATOR_WORKERS must be at least 1")
        if config.rate_limit_per_second <= 0:
            raise ValueError("AIVEN_RATE_LIMIT_PER_SECOND must be positive")
        return config

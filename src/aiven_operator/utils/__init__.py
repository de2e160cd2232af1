"""Utility functions for the Aiven Operator."""

from .conditions import (
    get_condition,
    remove_condition,
    set_degraded_condition,
    set_error_condition,
    set_preconditions_condition,
    set_ready_condition,
    update_condition,
)
from .context import get_context_dict, get_correlation_id, with_correlation_id
from .errors import (
    ConflictError,
    DeadlineExceeded,
    DescriptorError,
    ErrorKind,
    RemoteError,
    is_not_found,
    sanitize_exception,
)
from .events import emit_event
from .rate_limit import RateLimiter, exponential_backoff
from .secrets import get_secret_value, prune_empty, synthesize_secret

__all__ = [
    "update_condition",
    "get_condition",
    "remove_condition",
    "set_ready_condition",
    "set_preconditions_condition",
    "set_degraded_condition",
    "set_error_condition",
    "get_context_dict",
    "get_correlation_id",
    "with_correlation_id",
    "ConflictError",
    "DeadlineExceeded",
    "DescriptorError",
    "ErrorKind",
    "RemoteError",
    "is_not_found",
    "sanitize_exception",
    "emit_event",
    "RateLimiter",
    "exponential_backoff",
    "get_secret_value",
    "prune_empty",
    "synthesize_secret",
]

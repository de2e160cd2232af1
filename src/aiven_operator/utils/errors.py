"""Error taxonomy and sanitization utilities."""

from __future__ import annotations

import enum
import re


class ErrorKind(enum.Enum):
    """Classification of a remote control-plane failure."""

    NOT_FOUND = "NotFound"
    TRANSIENT = "Transient"
    FATAL = "Fatal"


class RemoteError(Exception):
    """Failure reported by the remote control plane."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.TRANSIENT, status_code: int | None = None):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code

    @property
    def is_fatal(self) -> bool:
        return self.kind is ErrorKind.FATAL


class DescriptorError(ValueError):
    """Malformed descriptor or a descriptor handed to the wrong adapter."""


class ConflictError(Exception):
    """A version-stamped write lost against a newer version of the object."""


class DeadlineExceeded(Exception):
    """The reconcile step ran past its deadline."""


def is_not_found(error: BaseException) -> bool:
    """Return True if the error is a remote NotFound signal."""
    return isinstance(error, RemoteError) and error.kind is ErrorKind.NOT_FOUND


def classify_status(status_code: int) -> ErrorKind:
    """Map an HTTP status code from the control plane to an error kind."""
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code in (400, 422):
        return ErrorKind.FATAL
    return ErrorKind.TRANSIENT


# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"aivenv1\s+([A-Za-z0-9+/=_\-\.]+)",
    r"[a-z][a-z0-9+.\-]*://[^:/@\s]+:([^@\s]+)@",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "token",
    "password",
    "access_key",
    "access_cert",
    "secret",
    "credentials",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(
            pattern,
            lambda m: m.group(0).replace(m.group(1), "[REDACTED]"),
            sanitized,
            flags=re.IGNORECASE,
        )

    for field in SENSITIVE_FIELDS:
        sanitized = re.sub(
            rf"{field}[:=\s]+([^\s,;\)]+)",
            rf"{field}: [REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: BaseException) -> str:
    """Sanitize exception message.

    Args:
        error: Exception object

    Returns:
        Sanitized error message
    """
    return sanitize_error_message(str(error))


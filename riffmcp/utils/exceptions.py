"""
Exception hierarchy and error handling utilities for riffmcp.

Provides:
- Custom exception classes with error codes
- Error categories and log tags for unexpected failures
- Safe error message formatting (no sensitive data leak)
"""

from __future__ import annotations

import asyncio
import re
from enum import Enum
from typing import Any


class ErrorCategory(Enum):
    """Error categories for classification."""
    RECOVERABLE = "recoverable"
    FATAL = "fatal"
    TIMEOUT = "timeout"


class RiffError(Exception):
    """Base exception for all riffmcp errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        category: ErrorCategory = ErrorCategory.FATAL,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "category": self.category.value,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class FramingError(RiffError):
    """The byte stream could not be split into messages; the stream is unusable."""

    def __init__(self, message: str, **details: Any):
        super().__init__(message, code="FRAMING_ERROR", category=ErrorCategory.FATAL, details=details)


class TruncatedStreamError(FramingError):
    """The stream closed in the middle of a header, body or line."""

    def __init__(self, stage: str, buffered: int):
        super().__init__(
            f"Stream closed mid-{stage} with {buffered} byte(s) buffered",
            stage=stage,
            buffered=buffered,
        )
        self.code = "TRUNCATED_STREAM"


class ConfigVerificationError(RiffError):
    """The server record read back after a write does not carry our instance token."""

    def __init__(self, path: str, expected: str, found: str | None):
        super().__init__(
            f"Server record at {path} was overwritten during startup",
            code="CONFIG_VERIFICATION_FAILED",
            category=ErrorCategory.FATAL,
            details={"path": path, "expected": expected, "found": found},
        )


class DiscoveryTimeoutError(RiffError):
    """No live primary appeared before the discovery deadline."""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            f"No running server found within {timeout_seconds:g}s",
            code="DISCOVERY_TIMEOUT",
            category=ErrorCategory.TIMEOUT,
            details={"timeout_seconds": timeout_seconds},
        )


class LaunchError(RiffError):
    """Spawning the primary process failed."""

    def __init__(self, command: list[str], reason: str):
        super().__init__(
            f"Failed to launch server ({' '.join(command)}): {reason}",
            code="LAUNCH_FAILED",
            category=ErrorCategory.FATAL,
            details={"command": command},
        )


class ProxyTransportError(RiffError):
    """Forwarding a message to the primary failed at the transport level."""

    def __init__(self, url: str, reason: str):
        super().__init__(
            f"Request to {url} failed: {reason}",
            code="PROXY_TRANSPORT_ERROR",
            category=ErrorCategory.FATAL,
            details={"url": url},
        )


class CollaboratorUnavailableError(RiffError):
    """An audio or notation backend is not available in this process."""

    def __init__(self, collaborator: str, message: str | None = None):
        super().__init__(
            message or f"{collaborator} is not available",
            code="COLLABORATOR_UNAVAILABLE",
            category=ErrorCategory.RECOVERABLE,
            details={"collaborator": collaborator},
        )


_SENSITIVE_PATTERNS = [
    re.compile(r"(api[_-]?key|token|secret|password|auth)[=:]\s*['\"]?([^\s'\"]+)['\"]?", re.IGNORECASE),
    re.compile(r"bearer\s+[a-zA-Z0-9\-._~+/]+=*", re.IGNORECASE),
    re.compile(r"[a-zA-Z0-9]{32,}"),
]


def sanitize_error_message(message: str, replacement: str = "[REDACTED]") -> str:
    """Remove sensitive information from error messages."""
    sanitized = message
    for pattern in _SENSITIVE_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)
    return sanitized


def classify_exception(exc: Exception) -> str:
    """Short error code used to tag an unexpected handler failure in the log."""
    if isinstance(exc, RiffError):
        return exc.code

    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return "TIMEOUT"

    if isinstance(exc, FileNotFoundError):
        return "FILE_NOT_FOUND"

    if isinstance(exc, OSError):
        return "OS_ERROR"

    if isinstance(exc, (ValueError, TypeError, KeyError)):
        return "INVALID_VALUE"

    return "INTERNAL_ERROR"

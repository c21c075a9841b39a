"""Utility functions for riffmcp."""

from riffmcp.utils.exceptions import (
    RiffError,
    FramingError,
    TruncatedStreamError,
    ConfigVerificationError,
    DiscoveryTimeoutError,
    LaunchError,
    ProxyTransportError,
    CollaboratorUnavailableError,
    ErrorCategory,
    classify_exception,
    sanitize_error_message,
)

__all__ = [
    "RiffError",
    "FramingError",
    "TruncatedStreamError",
    "ConfigVerificationError",
    "DiscoveryTimeoutError",
    "LaunchError",
    "ProxyTransportError",
    "CollaboratorUnavailableError",
    "ErrorCategory",
    "classify_exception",
    "sanitize_error_message",
]

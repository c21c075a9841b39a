"""Stdio-to-HTTP proxy used by --stdio invocations."""

from riffmcp.proxy.bridge import ProxyBridge, error_for_status

__all__ = ["ProxyBridge", "error_for_status"]

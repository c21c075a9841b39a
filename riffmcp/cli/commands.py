"""CLI entry point for riffmcp.

Without flags the process is a primary-candidate: it either becomes the one
server on this machine or exits because another is already running. With
``--stdio`` it is a proxy-candidate: it finds (or launches) the primary and
relays stdio JSON-RPC traffic to it. stdout belongs to the RPC channel in
that mode, so every diagnostic goes to stderr.
"""

from __future__ import annotations

import sys
from typing import IO

import httpx
import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape

from riffmcp import __version__
from riffmcp.cli.shared.logging_utils import configure_stderr_logging, ensure_rotating_log_file
from riffmcp.cli.shared.network_utils import is_address_in_use
from riffmcp.config.access import get_settings
from riffmcp.config.schema import Settings
from riffmcp.coordination.election import Election, Role
from riffmcp.coordination.launcher import PrimaryLauncher
from riffmcp.coordination.liveness import LivenessOracle
from riffmcp.coordination.store import ConfigStore
from riffmcp.proxy.bridge import ProxyBridge
from riffmcp.server.runtime import PrimaryServer
from riffmcp.utils.exceptions import (
    ConfigVerificationError,
    DiscoveryTimeoutError,
    FramingError,
    LaunchError,
    ProxyTransportError,
)

app = typer.Typer(
    name="riffmcp",
    help="riffmcp - music MCP server (HTTP primary with a stdio proxy)",
    add_completion=False,
)

console = Console(stderr=True, soft_wrap=True)


def _fail(message: str) -> None:
    """One diagnostic line on stderr."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)


def build_election(settings: Settings) -> Election:
    store = ConfigStore(settings.record_path)
    launcher = PrimaryLauncher(
        command=settings.launch_command,
        lock_path=store.launch_lock_path,
        stale_after=settings.discovery_timeout_seconds,
    )
    return Election(
        store,
        LivenessOracle(store),
        launcher,
        discovery_timeout=settings.discovery_timeout_seconds,
        poll_interval=settings.discovery_poll_interval_seconds,
    )


def run_proxy(
    settings: Settings,
    *,
    stdin: IO[bytes] | None = None,
    stdout: IO[bytes] | None = None,
    election: Election | None = None,
    client: httpx.Client | None = None,
) -> int:
    """Proxy-candidate path; returns the process exit code."""
    election = election or build_election(settings)
    try:
        outcome = election.run_proxy_candidate()
    except (DiscoveryTimeoutError, LaunchError) as e:
        logger.error("Proxy startup failed: {}", e)
        _fail(e.message)
        return 1

    record = outcome.record
    bridge = ProxyBridge(
        record.port,
        record.host,
        stdin=stdin if stdin is not None else sys.stdin.buffer,
        stdout=stdout if stdout is not None else sys.stdout.buffer,
        client=client,
        timeout=settings.proxy_request_timeout_seconds,
    )
    try:
        bridge.run()
    except (FramingError, ProxyTransportError) as e:
        logger.error("Proxy stopped: {}", e)
        _fail(e.message)
        return 1
    except OSError as e:
        logger.error("Proxy stdio channel failed: {}", e)
        _fail(f"Stdio channel closed: {e}")
        return 1
    return 0


def run_primary(settings: Settings, server: PrimaryServer | None = None) -> int:
    """Primary-candidate path; returns the process exit code."""
    server = server or PrimaryServer(settings)
    try:
        outcome = server.start()
    except ConfigVerificationError as e:
        logger.error("Startup aborted: {}", e)
        _fail(e.message)
        return 1
    except OSError as e:
        if is_address_in_use(e):
            _fail(f"Port {settings.port} is already in use on {settings.host}; use --port to pick another.")
        else:
            _fail(f"Cannot listen on {settings.host}:{settings.port}: {e}")
        return 1

    if outcome.role == Role.YIELD:
        console.print(
            f"riffmcp is already running (pid {outcome.record.pid}, port {outcome.record.port}).",
            highlight=False,
        )
        return 0

    console.print(f"riffmcp v{__version__} listening on {outcome.record.host}:{outcome.record.port}", highlight=False)
    server.serve()
    return 0


def version_callback(value: bool):
    if value:
        console.print(f"riffmcp v{__version__}")
        raise typer.Exit()


@app.command()
def main(
    stdio: bool = typer.Option(False, "--stdio", help="Relay JSON-RPC on stdin/stdout to the running server"),
    host: str = typer.Option(None, "--host", help="Bind host for the server"),
    port: int = typer.Option(None, "--port", "-p", help="Server port (0 picks a free port)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output on stderr"),
    version: bool = typer.Option(
        None, "--version", callback=version_callback, is_eager=True
    ),
):
    """Start the riffmcp server, or proxy stdio to it with --stdio."""
    try:
        settings = get_settings()
    except ValueError as e:
        _fail(str(e))
        raise typer.Exit(1)
    updates = {k: v for k, v in (("host", host), ("port", port)) if v is not None}
    if updates:
        settings = settings.model_copy(update=updates)

    level = "DEBUG" if verbose else settings.log_level
    # In proxy mode stderr stays quiet unless asked, so failures show up as a single line.
    configure_stderr_logging(level, enabled=verbose or not stdio)
    if settings.log_to_file:
        ensure_rotating_log_file(settings.log_dir, "proxy" if stdio else "server", level=level)

    code = run_proxy(settings) if stdio else run_primary(settings)
    raise typer.Exit(code)

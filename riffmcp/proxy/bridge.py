"""Relay framed stdio messages to the primary's HTTP endpoint and back."""

from __future__ import annotations

from typing import IO

import httpx
from loguru import logger

from riffmcp.rpc.codec import encode, peek_id
from riffmcp.rpc.models import RPCError, RPCResponse
from riffmcp.stdio.framing import Frame, FrameFormat, FrameReader, FrameWriter
from riffmcp.utils.exceptions import ProxyTransportError

DEFAULT_TIMEOUT_SECONDS = 30.0


def error_for_status(status_code: int) -> RPCError:
    """Map a non-2xx HTTP status from the primary onto a JSON-RPC error."""
    if 400 <= status_code < 500:
        return RPCError.invalid_request()
    if 500 <= status_code < 600:
        return RPCError.server_error(f"Server error (HTTP {status_code})")
    return RPCError.internal_error()


class ProxyBridge:
    """
    One request at a time: read a frame, POST it, write the reply in the
    request's format. Returns on a clean end of stdin. Transport failures
    raise ProxyTransportError and are not retried.
    """

    def __init__(
        self,
        port: int,
        host: str = "127.0.0.1",
        *,
        stdin: IO[bytes],
        stdout: IO[bytes],
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        fixed_format: FrameFormat | None = None,
    ):
        self.url = f"http://{host}:{port}/"
        self._reader = FrameReader(stdin, fixed_format=fixed_format)
        self._writer = FrameWriter(stdout)
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)
        self.forwarded = 0

    def run(self) -> None:
        logger.info("Proxying stdio to {}", self.url)
        try:
            for frame in self._reader:
                self.forward(frame)
        finally:
            self.close()
        logger.info("Stdin closed after {} message(s); proxy shutting down", self.forwarded)

    def forward(self, frame: Frame) -> None:
        reply = self._post(frame.body)
        self.forwarded += 1
        if not reply.strip():
            return
        if frame.format == FrameFormat.LINE_DELIMITED and (b"\n" in reply or b"\r" in reply):
            # Raw line breaks can only be insignificant whitespace in valid JSON.
            reply = reply.replace(b"\r", b"").replace(b"\n", b"")
        self._writer.reply(frame, reply)

    def _post(self, body: bytes) -> bytes:
        logger.debug("Forwarding {} byte(s)", len(body))
        try:
            response = self._client.post(
                self.url,
                content=body,
                headers={"Content-Type": "application/json", "X-RiffMCP-Transport": "stdio"},
            )
        except httpx.TransportError as e:
            raise ProxyTransportError(self.url, str(e) or type(e).__name__) from e

        if not response.is_success:
            error = error_for_status(response.status_code)
            logger.warning("Server answered HTTP {}; replying with JSON-RPC error {}", response.status_code, error.code)
            return encode(RPCResponse.failure(error, peek_id(body)))
        return response.content

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

"""
JSON-RPC method dispatch for the MCP surface.

Transport independent: the HTTP app hands over raw bodies, the dispatcher
returns raw bodies (or None for notifications). Message-level failures come
back as JSON-RPC error responses with the request id preserved.
"""

from __future__ import annotations

import asyncio
import base64
import uuid
from pathlib import Path
from typing import Any, Awaitable, Callable
from urllib.parse import unquote

from loguru import logger
from pydantic import ValidationError

from riffmcp import __version__
from riffmcp.rpc.codec import decode_request, encode
from riffmcp.rpc.models import RPCError, RPCException, RPCRequest, RPCResponse
from riffmcp.scores import ScoreCache
from riffmcp.server.activity import ActivityEvent, ActivityLog, Transport
from riffmcp.server.collaborators import AudioPlayer, LoggingAudioPlayer, NotationRenderer, UnavailableRenderer
from riffmcp.server.sequence import EngraveInput, MusicSequence
from riffmcp.server.tool_schemas import tool_definitions
from riffmcp.utils.exceptions import RiffError, classify_exception, sanitize_error_message

PROTOCOL_VERSION = "2025-06-18"
SERVER_NAME = "riffmcp"
PNG_MIME_TYPE = "image/png"

Handler = Callable[[RPCRequest], Awaitable[Any]]


def text_block(text: str) -> dict[str, Any]:
    return {"type": "text", "text": text}


def image_block(data: bytes, mime_type: str = PNG_MIME_TYPE) -> dict[str, Any]:
    return {"type": "image", "data": base64.b64encode(data).decode("ascii"), "mimeType": mime_type}


def resource_block(uri: str, name: str, mime_type: str, description: str | None = None) -> dict[str, Any]:
    block = {"type": "resource", "uri": uri, "name": name, "mimeType": mime_type}
    if description:
        block["text"] = description
    return block


def _params_object(request: RPCRequest) -> dict[str, Any]:
    params = request.params.to_json() if request.params is not None else None
    if not isinstance(params, dict):
        raise RPCException(RPCError.invalid_params(), request.id)
    return params


class RequestDispatcher:
    """Routes MCP methods to handlers; one instance is shared by all connections."""

    def __init__(
        self,
        *,
        scores: ScoreCache,
        image_dir: Path,
        audio: AudioPlayer | None = None,
        renderer: NotationRenderer | None = None,
        activity: ActivityLog | None = None,
        host: str = "127.0.0.1",
        port: int = 0,
    ):
        self.scores = scores
        self.image_dir = Path(image_dir)
        self.audio = audio or LoggingAudioPlayer()
        self.renderer = renderer or UnavailableRenderer()
        self.activity = activity or ActivityLog()
        self.host = host
        self.port = port
        self.client_initialized = False
        self._methods: dict[str, Handler] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
            "resources/list": self._resources_list,
            "resources/templates/list": self._resource_templates_list,
            "resources/read": self._resources_read,
            "prompts/list": self._prompts_list,
        }

    def update_port(self, port: int) -> None:
        self.port = port

    async def handle_bytes(self, body: bytes, transport: Transport = Transport.HTTP) -> bytes | None:
        """Decode, dispatch and encode one message. None means nothing to send back."""
        try:
            request = decode_request(body)
        except RPCException as e:
            logger.warning("Rejected undecodable request ({} bytes): {}", len(body), e.error.message)
            return encode(e.to_response())
        event = self._record(request, transport, body)
        response = await self.handle(request)
        if response is None:
            return None
        try:
            reply = encode(response)
        except ValueError as e:
            logger.error("Reply to {} is not valid JSON: {}", request.method, e)
            reply = encode(RPCResponse.failure(RPCError.internal_error(), response.id))
        self.activity.attach_response(event, reply.decode("utf-8"))
        return reply

    async def handle(self, request: RPCRequest) -> RPCResponse | None:
        if request.is_notification:
            if request.method == "notifications/initialized":
                self.client_initialized = True
                logger.info("Client initialized")
            else:
                logger.info("Received notification: {}", request.method)
            return None

        handler = self._methods.get(request.method)
        if handler is None:
            return RPCResponse.failure(RPCError.method_not_found(), request.id)
        try:
            result = await handler(request)
        except RPCException as e:
            return RPCResponse.failure(e.error, request.id)
        except Exception as e:
            code = classify_exception(e)
            logger.exception("Unhandled error in {} [{}]: {}", request.method, code, sanitize_error_message(str(e)))
            return RPCResponse.failure(RPCError.internal_error(), request.id)
        return RPCResponse.success(result, request.id)

    def _record(self, request: RPCRequest, transport: Transport, raw_body: bytes) -> ActivityEvent:
        tool_name = None
        client_info = None
        params = request.params.to_json() if request.params is not None else None
        if isinstance(params, dict):
            if request.method == "tools/call" and isinstance(params.get("name"), str):
                tool_name = params["name"]
            if request.method == "initialize" and isinstance(params.get("clientInfo"), dict):
                info = params["clientInfo"]
                client_info = f"{info.get('name', 'unknown')} {info.get('version', '')}".strip()
                logger.info("Client initializing: {}", client_info)
        return self.activity.record_request(
            request.method,
            transport,
            raw_body.decode("utf-8", errors="replace"),
            tool_name=tool_name,
            client_info=client_info,
        )

    async def _initialize(self, request: RPCRequest) -> dict[str, Any]:
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {
                "tools": {"listChanged": False},
                "prompts": {"listChanged": False},
                "resources": {"listChanged": False},
            },
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
        }

    async def _ping(self, request: RPCRequest) -> dict[str, Any]:
        return {}

    async def _tools_list(self, request: RPCRequest) -> dict[str, Any]:
        return {"tools": tool_definitions()}

    async def _resources_list(self, request: RPCRequest) -> dict[str, Any]:
        return {"resources": []}

    async def _resource_templates_list(self, request: RPCRequest) -> dict[str, Any]:
        return {"resourceTemplates": []}

    async def _prompts_list(self, request: RPCRequest) -> dict[str, Any]:
        return {"prompts": []}

    async def _tools_call(self, request: RPCRequest) -> dict[str, Any]:
        params = _params_object(request)
        name = params.get("name")
        if not isinstance(name, str):
            raise RPCException(RPCError.invalid_params(), request.id)
        arguments = params.get("arguments") or {}
        logger.info("Tool call: {}", name)

        tools = {"play": self._play, "engrave": self._engrave}
        tool = tools.get(name)
        if tool is None:
            raise RPCException(RPCError.server_error(f"Unknown tool: {name}"), request.id)
        try:
            content = await tool(arguments)
        except ValidationError as e:
            logger.info("Invalid arguments for {}: {}", name, e.error_count())
            raise RPCException(RPCError.invalid_params(), request.id) from e
        except RPCException as e:
            raise RPCException(e.error, request.id) from e
        except RiffError as e:
            raise RPCException(RPCError.server_error(f"Tool execution failed: {e.message}"), request.id) from e
        except Exception as e:
            message = sanitize_error_message(str(e) or type(e).__name__)
            logger.warning("Tool {} failed: {}", name, message)
            raise RPCException(RPCError.server_error(f"Tool execution failed: {message}"), request.id) from e
        return {"content": content}

    async def _play(self, arguments: Any) -> list[dict[str, Any]]:
        sequence = MusicSequence.model_validate(arguments)
        payload = sequence.to_payload()
        await asyncio.to_thread(self.audio.play, payload)

        score_id = str(uuid.uuid4())
        self.scores.put(score_id, payload)

        events = sequence.event_count
        summary = (
            f"Playing {sequence.title or 'Untitled'} at {int(sequence.tempo)} BPM "
            f"with {events} event{'' if events == 1 else 's'}. "
        )
        return [text_block(summary), text_block(f"Score ID: {score_id}")]

    async def _engrave(self, arguments: Any) -> list[dict[str, Any]]:
        engrave = EngraveInput.model_validate(arguments)
        inline = engrave.inline_sequence()
        if inline is not None:
            payload = inline.to_payload()
        elif engrave.score_id is not None:
            payload = self.scores.get(engrave.score_id)
            if payload is None:
                raise RPCException(RPCError.server_error(f"Score ID '{engrave.score_id}' not found"))
        else:
            payload = self.scores.get()
            if payload is None:
                raise RPCException(
                    RPCError.server_error("No score available. Either provide notes or play a sequence first.")
                )

        png = await asyncio.to_thread(self.renderer.render, payload)
        if not isinstance(png, (bytes, bytearray)) or not png:
            raise RPCException(RPCError.server_error("Renderer returned no image data."))

        self.image_dir.mkdir(parents=True, exist_ok=True)
        filename = f"{uuid.uuid4()}.png"
        (self.image_dir / filename).write_bytes(png)
        uri = f"http://{self.host}:{self.port}/images/{filename}"
        logger.info("Engraved {} ({} bytes)", uri, len(png))
        return [
            image_block(bytes(png)),
            resource_block(uri, filename, PNG_MIME_TYPE, payload.get("title")),
        ]

    async def _resources_read(self, request: RPCRequest) -> dict[str, Any]:
        params = _params_object(request)
        uri = params.get("uri")
        if not isinstance(uri, str):
            raise RPCException(RPCError.invalid_params(), request.id)
        if not uri.startswith("file://"):
            raise RPCException(RPCError.server_error("Unsupported URI scheme"), request.id)

        path = Path(unquote(uri[len("file://"):])).resolve()
        if not path.is_relative_to(self.image_dir.resolve()):
            raise RPCException(RPCError.server_error("Access denied to resource."), request.id)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise RPCException(RPCError.server_error("Resource not found."), request.id) from e
        return {
            "contents": [
                {"uri": uri, "mimeType": PNG_MIME_TYPE, "blob": base64.b64encode(data).decode("ascii")}
            ]
        }


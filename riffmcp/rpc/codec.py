"""Decode and encode JSON-RPC envelopes."""

from __future__ import annotations

import json
from typing import Any

from riffmcp.rpc.models import (
    JSONRPC_VERSION,
    DynamicValue,
    RPCError,
    RPCException,
    RPCRequest,
    RPCResponse,
)


def _optional_value(obj: dict[str, Any], key: str) -> DynamicValue | None:
    if key not in obj or obj[key] is None:
        return None
    return DynamicValue.from_json(obj[key])


def _decode_error(raw: Any, request_id: DynamicValue | None) -> RPCError:
    if not isinstance(raw, dict):
        raise RPCException(RPCError.parse_error(), request_id)
    code = raw.get("code")
    message = raw.get("message")
    if isinstance(code, bool) or not isinstance(code, int) or not isinstance(message, str):
        raise RPCException(RPCError.parse_error(), request_id)
    return RPCError(code, message, _optional_value(raw, "data"))


def decode(data: bytes | str) -> RPCRequest | RPCResponse:
    """
    Decode one JSON-RPC request or response.

    Raises RPCException carrying ParseError for invalid JSON, a wrong protocol
    version, or an object that is neither a request nor a response. When the
    payload had an id it is kept on the exception.
    """
    try:
        obj = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise RPCException(RPCError.parse_error()) from exc
    if not isinstance(obj, dict):
        raise RPCException(RPCError.parse_error())

    request_id = _optional_value(obj, "id")
    if obj.get("jsonrpc") != JSONRPC_VERSION:
        raise RPCException(RPCError.parse_error(), request_id)

    if "method" in obj:
        method = obj["method"]
        if not isinstance(method, str):
            raise RPCException(RPCError.invalid_request(), request_id)
        return RPCRequest(method=method, params=_optional_value(obj, "params"), id=request_id)

    if "error" in obj and obj["error"] is not None:
        return RPCResponse(error=_decode_error(obj["error"], request_id), id=request_id)
    if "result" in obj:
        return RPCResponse(result=DynamicValue.from_json(obj["result"]), id=request_id)

    raise RPCException(RPCError.parse_error(), request_id)


def decode_request(data: bytes | str) -> RPCRequest:
    """Decode a payload that must be a request (the server side of the wire)."""
    message = decode(data)
    if not isinstance(message, RPCRequest):
        raise RPCException(RPCError.invalid_request(), message.id)
    return message


def peek_id(data: bytes | str) -> DynamicValue | None:
    """Best-effort id extraction from a payload that may not decode cleanly."""
    try:
        obj = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(obj, dict):
        return None
    try:
        return _optional_value(obj, "id")
    except TypeError:
        return None


def encode(message: RPCRequest | RPCResponse | DynamicValue) -> bytes:
    """
    Serialize as compact UTF-8 JSON on a single line.

    NaN and infinite floats have no JSON form and raise ValueError.
    """
    return json.dumps(
        message.to_json(), ensure_ascii=False, allow_nan=False, separators=(",", ":")
    ).encode("utf-8")

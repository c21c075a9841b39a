"""JSON-RPC message model for riffmcp."""

from riffmcp.rpc.codec import decode, decode_request, encode, peek_id
from riffmcp.rpc.models import (
    DynamicValue,
    RPCError,
    RPCException,
    RPCRequest,
    RPCResponse,
    ValueKind,
)

__all__ = [
    "DynamicValue",
    "RPCError",
    "RPCException",
    "RPCRequest",
    "RPCResponse",
    "ValueKind",
    "decode",
    "decode_request",
    "encode",
    "peek_id",
]

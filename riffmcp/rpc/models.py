"""JSON-RPC 2.0 envelopes and the dynamic JSON value carried in params and results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

JSONRPC_VERSION = "2.0"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_ERROR = -32000

# Reserved for implementation-defined server errors.
SERVER_ERROR_BAND = range(-32099, -31999)


class ValueKind(str, Enum):
    NULL = "null"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True)
class DynamicValue:
    """
    Closed tagged union over the JSON value space.

    ``from_json`` resolves a parsed JSON value in a fixed priority order:
    bool, int, float, string, list, mapping. ``bool`` has to be tested
    before ``int`` because it is an ``int`` subclass in Python, and the
    int/float distinction made by the JSON parser is kept so ``1`` and
    ``1.5`` come back as INT and FLOAT respectively.
    """

    kind: ValueKind
    value: Any = None

    @classmethod
    def null(cls) -> DynamicValue:
        return cls(ValueKind.NULL, None)

    @classmethod
    def from_json(cls, raw: Any) -> DynamicValue:
        if raw is None:
            return cls(ValueKind.NULL, None)
        if isinstance(raw, bool):
            return cls(ValueKind.BOOL, raw)
        if isinstance(raw, int):
            return cls(ValueKind.INT, raw)
        if isinstance(raw, float):
            return cls(ValueKind.FLOAT, raw)
        if isinstance(raw, str):
            return cls(ValueKind.STRING, raw)
        if isinstance(raw, (list, tuple)):
            return cls(ValueKind.ARRAY, tuple(cls.from_json(item) for item in raw))
        if isinstance(raw, dict):
            items: dict[str, DynamicValue] = {}
            for key, item in raw.items():
                if not isinstance(key, str):
                    raise TypeError(f"Object keys must be strings, got {type(key).__name__}")
                items[key] = cls.from_json(item)
            return cls(ValueKind.OBJECT, items)
        raise TypeError(f"Unsupported JSON value type: {type(raw).__name__}")

    def to_json(self) -> Any:
        if self.kind == ValueKind.ARRAY:
            return [item.to_json() for item in self.value]
        if self.kind == ValueKind.OBJECT:
            return {key: item.to_json() for key, item in self.value.items()}
        return self.value

    @property
    def is_null(self) -> bool:
        return self.kind == ValueKind.NULL

    def as_str(self) -> str | None:
        return self.value if self.kind == ValueKind.STRING else None

    def as_int(self) -> int | None:
        return self.value if self.kind == ValueKind.INT else None

    def as_float(self) -> float | None:
        if self.kind == ValueKind.FLOAT:
            return self.value
        if self.kind == ValueKind.INT:
            return float(self.value)
        return None

    def as_list(self) -> list[DynamicValue] | None:
        return list(self.value) if self.kind == ValueKind.ARRAY else None

    def as_dict(self) -> dict[str, DynamicValue] | None:
        return dict(self.value) if self.kind == ValueKind.OBJECT else None

    def get(self, key: str) -> DynamicValue | None:
        if self.kind != ValueKind.OBJECT:
            return None
        return self.value.get(key)


@dataclass(frozen=True)
class RPCError:
    code: int
    message: str
    data: DynamicValue | None = None

    @classmethod
    def parse_error(cls) -> RPCError:
        return cls(PARSE_ERROR, "Parse error")

    @classmethod
    def invalid_request(cls, message: str = "Invalid Request") -> RPCError:
        return cls(INVALID_REQUEST, message)

    @classmethod
    def method_not_found(cls) -> RPCError:
        return cls(METHOD_NOT_FOUND, "Method not found")

    @classmethod
    def invalid_params(cls, message: str = "Invalid params") -> RPCError:
        return cls(INVALID_PARAMS, message)

    @classmethod
    def internal_error(cls) -> RPCError:
        return cls(INTERNAL_ERROR, "Internal error")

    @classmethod
    def server_error(cls, message: str) -> RPCError:
        return cls(SERVER_ERROR, message)

    def to_json(self) -> dict[str, Any]:
        body: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            body["data"] = self.data.to_json()
        return body


@dataclass(frozen=True)
class RPCRequest:
    method: str
    params: DynamicValue | None = None
    id: DynamicValue | None = None
    jsonrpc: str = JSONRPC_VERSION

    @property
    def is_notification(self) -> bool:
        return self.id is None or self.id.is_null

    def to_json(self) -> dict[str, Any]:
        body: dict[str, Any] = {"jsonrpc": self.jsonrpc, "method": self.method}
        if self.params is not None:
            body["params"] = self.params.to_json()
        if self.id is not None:
            body["id"] = self.id.to_json()
        return body


@dataclass(frozen=True)
class RPCResponse:
    """Exactly one of ``result`` and ``error`` is set."""

    result: DynamicValue | None = None
    error: RPCError | None = None
    id: DynamicValue | None = None
    jsonrpc: str = JSONRPC_VERSION

    def __post_init__(self) -> None:
        if (self.result is None) == (self.error is None):
            raise ValueError("RPCResponse requires exactly one of result or error")

    @classmethod
    def success(cls, result: Any, id: DynamicValue | None) -> RPCResponse:
        if not isinstance(result, DynamicValue):
            result = DynamicValue.from_json(result)
        return cls(result=result, id=id)

    @classmethod
    def failure(cls, error: RPCError, id: DynamicValue | None) -> RPCResponse:
        return cls(error=error, id=id)

    def to_json(self) -> dict[str, Any]:
        body: dict[str, Any] = {"jsonrpc": self.jsonrpc}
        if self.error is not None:
            body["error"] = self.error.to_json()
        else:
            body["result"] = self.result.to_json()
        body["id"] = self.id.to_json() if self.id is not None else None
        return body


class RPCException(Exception):
    """Raised during decoding or dispatch to turn into an error response."""

    def __init__(self, error: RPCError, request_id: DynamicValue | None = None):
        super().__init__(error.message)
        self.error = error
        self.request_id = request_id

    def to_response(self) -> RPCResponse:
        return RPCResponse.failure(self.error, self.request_id)

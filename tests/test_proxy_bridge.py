"""Tests for the stdio-to-HTTP proxy bridge."""

import io
import json

import httpx
import pytest

from riffmcp.proxy.bridge import ProxyBridge, error_for_status
from riffmcp.stdio.framing import FrameFormat, encode_frame
from riffmcp.utils.exceptions import ProxyTransportError, TruncatedStreamError

PING = b'{"jsonrpc":"2.0","method":"ping","id":1}'
NOTIFY = b'{"jsonrpc":"2.0","method":"notifications/initialized"}'


def _echo_handler(seen: list):
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        payload = json.loads(request.content)
        if "id" not in payload:
            return httpx.Response(204)
        reply = {"jsonrpc": "2.0", "result": {}, "id": payload["id"]}
        return httpx.Response(200, content=json.dumps(reply, separators=(",", ":")).encode())

    return handler


def _bridge(stdin: bytes, handler, **kwargs) -> tuple[ProxyBridge, io.BytesIO]:
    stdout = io.BytesIO()
    client = httpx.Client(transport=httpx.MockTransport(handler))
    bridge = ProxyBridge(4000, stdin=io.BytesIO(stdin), stdout=stdout, client=client, **kwargs)
    return bridge, stdout


def test_line_request_gets_line_reply() -> None:
    seen: list = []
    bridge, stdout = _bridge(PING + b"\n", _echo_handler(seen))
    bridge.run()

    assert stdout.getvalue() == b'{"jsonrpc":"2.0","result":{},"id":1}\n'
    assert bridge.forwarded == 1
    assert seen[0].url == "http://127.0.0.1:4000/"
    assert seen[0].content == PING


def test_length_prefixed_request_gets_length_prefixed_reply() -> None:
    bridge, stdout = _bridge(encode_frame(PING, FrameFormat.LENGTH_PREFIXED), _echo_handler([]))
    bridge.run()

    reply = b'{"jsonrpc":"2.0","result":{},"id":1}'
    assert stdout.getvalue() == b"Content-Length: %d\r\n\r\n" % len(reply) + reply


def test_mixed_formats_are_answered_in_kind() -> None:
    stdin = PING + b"\n" + encode_frame(PING, FrameFormat.LENGTH_PREFIXED)
    bridge, stdout = _bridge(stdin, _echo_handler([]))
    bridge.run()

    out = stdout.getvalue()
    assert out.startswith(b'{"jsonrpc":"2.0","result":{},"id":1}\nContent-Length: ')
    assert bridge.forwarded == 2


def test_requests_carry_stdio_transport_header() -> None:
    seen: list = []
    bridge, _ = _bridge(PING + b"\n", _echo_handler(seen))
    bridge.run()

    assert seen[0].headers["X-RiffMCP-Transport"] == "stdio"
    assert seen[0].headers["Content-Type"] == "application/json"


def test_notification_produces_no_output() -> None:
    seen: list = []
    bridge, stdout = _bridge(NOTIFY + b"\n" + PING + b"\n", _echo_handler(seen))
    bridge.run()

    assert len(seen) == 2
    assert stdout.getvalue() == b'{"jsonrpc":"2.0","result":{},"id":1}\n'


def test_pretty_printed_reply_is_flattened_for_line_clients() -> None:
    def handler(request):
        return httpx.Response(200, content=b'{\n  "jsonrpc": "2.0",\r\n  "result": 1,\n  "id": 1\n}')

    bridge, stdout = _bridge(PING + b"\n", handler)
    bridge.run()

    out = stdout.getvalue()
    assert out.count(b"\n") == 1
    assert json.loads(out) == {"jsonrpc": "2.0", "result": 1, "id": 1}


@pytest.mark.parametrize(
    "status, code",
    [(500, -32000), (503, -32000), (404, -32600), (400, -32600), (302, -32603)],
)
def test_http_errors_become_rpc_errors_with_request_id(status: int, code: int) -> None:
    bridge, stdout = _bridge(b'{"jsonrpc":"2.0","method":"ping","id":"abc"}\n', lambda r: httpx.Response(status))
    bridge.run()

    reply = json.loads(stdout.getvalue())
    assert reply["error"]["code"] == code
    assert reply["id"] == "abc"


def test_server_error_message_names_status() -> None:
    assert error_for_status(502).message == "Server error (HTTP 502)"


def test_connection_failure_is_fatal() -> None:
    def handler(request):
        raise httpx.ConnectError("Connection refused", request=request)

    bridge, stdout = _bridge(PING + b"\n" + PING + b"\n", handler)
    with pytest.raises(ProxyTransportError, match="Connection refused"):
        bridge.run()
    assert stdout.getvalue() == b""
    assert bridge.forwarded == 0


def test_truncated_stdin_raises_after_earlier_replies() -> None:
    bridge, stdout = _bridge(PING + b"\n" + b"Content-Length: 40\r\n\r\n{", _echo_handler([]))
    with pytest.raises(TruncatedStreamError):
        bridge.run()
    assert stdout.getvalue() == b'{"jsonrpc":"2.0","result":{},"id":1}\n'


def test_empty_stdin_forwards_nothing() -> None:
    seen: list = []
    bridge, stdout = _bridge(b"", _echo_handler(seen))
    bridge.run()
    assert seen == []
    assert stdout.getvalue() == b""


def test_fixed_line_format_forwards_non_object_lines() -> None:
    seen: list = []

    def handler(request):
        seen.append(request.content)
        return httpx.Response(200, content=b'{"jsonrpc":"2.0","error":{"code":-32700,"message":"Parse error"},"id":null}')

    bridge, stdout = _bridge(b"not json\n", handler, fixed_format=FrameFormat.LINE_DELIMITED)
    bridge.run()

    assert seen == [b"not json"]
    assert json.loads(stdout.getvalue())["error"]["code"] == -32700

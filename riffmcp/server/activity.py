"""In-memory log of recent RPC traffic, served at GET /activity."""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any


class Transport(str, Enum):
    HTTP = "HTTP"
    STDIO = "STDIO"


class EventKind(str, Enum):
    REQUEST = "request"
    NOTIFICATION = "notification"
    TOOLS_LIST = "tools_list"
    TOOLS_CALL = "tools_call"
    RESOURCES_LIST = "resources_list"
    PROMPTS_LIST = "prompts_list"


_KIND_BY_METHOD = {
    "notifications/initialized": EventKind.NOTIFICATION,
    "tools/list": EventKind.TOOLS_LIST,
    "tools/call": EventKind.TOOLS_CALL,
    "resources/list": EventKind.RESOURCES_LIST,
    "prompts/list": EventKind.PROMPTS_LIST,
}


@dataclass(frozen=True)
class ActivityEvent:
    timestamp: float
    message: str
    kind: EventKind
    transport: Transport
    request_data: str | None = None
    response_data: str | None = None
    client_info: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        data["transport"] = self.transport.value
        return data


class ActivityLog:
    """Newest-first bounded event list; safe to use from request handlers on any thread."""

    def __init__(self, max_entries: int = 100):
        self._events: deque[ActivityEvent] = deque(maxlen=max_entries)
        self._lock = threading.Lock()
        self.request_count = 0

    def record_request(
        self,
        method: str,
        transport: Transport,
        body: str,
        *,
        tool_name: str | None = None,
        client_info: str | None = None,
    ) -> ActivityEvent:
        prefix = "POST" if transport == Transport.HTTP else "STDIO"
        detail = f" - {tool_name}" if tool_name else ""
        event = ActivityEvent(
            timestamp=time.time(),
            message=f"{prefix} /{method}{detail} ({len(body.encode('utf-8'))} bytes)",
            kind=_KIND_BY_METHOD.get(method, EventKind.REQUEST),
            transport=transport,
            request_data=body,
            client_info=client_info,
        )
        with self._lock:
            self._events.appendleft(event)
            if event.kind == EventKind.REQUEST:
                self.request_count += 1
        return event

    def attach_response(self, event: ActivityEvent, response: str) -> None:
        """Attach a response body to the event recorded for its request; no-op once evicted."""
        with self._lock:
            for index, existing in enumerate(self._events):
                if existing is event:
                    self._events[index] = replace(existing, response_data=response)
                    return

    def recent(self, limit: int | None = None) -> list[ActivityEvent]:
        with self._lock:
            events = list(self._events)
        return events if limit is None else events[:limit]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
            self.request_count = 0

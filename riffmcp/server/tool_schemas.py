"""Tool definitions advertised through tools/list."""

from __future__ import annotations

from typing import Any

_EVENT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "time": {"type": "number", "description": "Start time in beats from the beginning of the sequence"},
        "pitches": {
            "type": "array",
            "items": {"type": ["integer", "string"]},
            "description": "MIDI note numbers (60 = middle C) or note names such as \"C4\" or \"F#3\"",
        },
        "dur": {"type": "number", "description": "Duration in beats"},
        "vel": {"type": "integer", "minimum": 0, "maximum": 127, "description": "Velocity (default 100)"},
    },
    "required": ["time", "pitches", "dur"],
}

_TRACKS_SCHEMA: dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "instrument": {"type": "string", "description": "Instrument name, e.g. grand_piano"},
            "name": {"type": "string"},
            "events": {"type": "array", "items": _EVENT_SCHEMA},
        },
        "required": ["events"],
    },
}

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "name": "play",
        "description": (
            "Play a multi-track music sequence. Returns a score ID that engrave "
            "can use to render the same music as sheet music."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "title": {"type": "string"},
                "tempo": {"type": "number", "description": "Beats per minute"},
                "tracks": _TRACKS_SCHEMA,
            },
            "required": ["tempo", "tracks"],
        },
    },
    {
        "name": "engrave",
        "description": (
            "Render sheet music as a PNG image. Pass a sequence (tempo and tracks), "
            "a score_id returned by play, or nothing to engrave the last played score."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "title": {"type": "string"},
                "tempo": {"type": "number"},
                "tracks": _TRACKS_SCHEMA,
                "score_id": {"type": "string"},
            },
        },
    },
]


def tool_definitions() -> list[dict[str, Any]]:
    return [dict(tool) for tool in TOOL_DEFINITIONS]

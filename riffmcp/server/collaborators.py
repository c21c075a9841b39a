"""Contracts for the audio and notation backends the tools delegate to."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from loguru import logger

from riffmcp.utils.exceptions import CollaboratorUnavailableError


@runtime_checkable
class AudioPlayer(Protocol):
    def play(self, sequence: dict[str, Any]) -> None:
        """Start playback of a validated sequence payload."""


@runtime_checkable
class NotationRenderer(Protocol):
    def render(self, sequence: dict[str, Any]) -> bytes:
        """Return PNG bytes for a validated sequence payload."""


class LoggingAudioPlayer:
    """Stand-in player for headless servers: records what would have been played."""

    def __init__(self):
        self.played: list[dict[str, Any]] = []

    def play(self, sequence: dict[str, Any]) -> None:
        tracks = sequence.get("tracks", [])
        events = sum(len(track.get("events", [])) for track in tracks)
        logger.info(
            "Playback requested: {!r} at {} BPM, {} track(s), {} event(s)",
            sequence.get("title") or "Untitled",
            sequence.get("tempo"),
            len(tracks),
            events,
        )
        self.played.append(sequence)


class UnavailableRenderer:
    def render(self, sequence: dict[str, Any]) -> bytes:
        raise CollaboratorUnavailableError(
            "notation renderer",
            "Notation rendering is not available on this server",
        )

"""Music sequence payloads accepted by the play and engrave tools."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_INSTRUMENT = "grand_piano"


class SequenceEvent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    time: float = Field(ge=0)
    pitches: list[int | str]
    dur: float = Field(gt=0)
    vel: int | None = Field(default=None, ge=0, le=127)


class Track(BaseModel):
    model_config = ConfigDict(extra="ignore")

    instrument: str = DEFAULT_INSTRUMENT
    name: str | None = None
    events: list[SequenceEvent]


def _lift_single_track(data: Any) -> Any:
    # Older clients send one track inline: {"tempo", "instrument", "events"}.
    if isinstance(data, dict) and "tracks" not in data and "events" in data:
        data = dict(data)
        data["tracks"] = [{
            "instrument": data.pop("instrument", DEFAULT_INSTRUMENT),
            "events": data.pop("events"),
        }]
    return data


class MusicSequence(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    tempo: float = Field(gt=0)
    tracks: list[Track]

    @model_validator(mode="before")
    @classmethod
    def accept_single_track(cls, data: Any) -> Any:
        return _lift_single_track(data)

    @property
    def event_count(self) -> int:
        return sum(len(track.events) for track in self.tracks)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class EngraveInput(BaseModel):
    """Either an inline sequence, a score id, or nothing (use the last played score)."""
    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    tempo: float | None = Field(default=None, gt=0)
    tracks: list[Track] | None = None
    score_id: str | None = None

    @model_validator(mode="before")
    @classmethod
    def accept_single_track(cls, data: Any) -> Any:
        return _lift_single_track(data)

    def inline_sequence(self) -> MusicSequence | None:
        if self.tempo is None or self.tracks is None:
            return None
        return MusicSequence(title=self.title, tempo=self.tempo, tracks=self.tracks)

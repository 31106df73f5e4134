from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(order=True)
class Note:
    """A single note event in a track.

    Times are in ticks, absolute from the start of the document and expressed
    in the owning document's resolution (ppq).
    """

    start: int
    duration: int
    pitch: int
    velocity: int = 100
    off_velocity: int = 64

    def __post_init__(self) -> None:
        if not (0 <= self.pitch <= 127):
            raise ValueError(f"pitch out of range: {self.pitch}")
        if not (0 <= self.velocity <= 127):
            raise ValueError(f"velocity out of range: {self.velocity}")
        if not (0 <= self.off_velocity <= 127):
            raise ValueError(f"off velocity out of range: {self.off_velocity}")
        if self.start < 0:
            raise ValueError("start must be >= 0")
        if self.duration < 0:
            raise ValueError("duration must be >= 0")

    @property
    def end(self) -> int:
        return self.start + self.duration

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start,
            "duration": self.duration,
            "pitch": self.pitch,
            "velocity": self.velocity,
            "off_velocity": self.off_velocity,
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Note":
        return Note(
            start=int(d["start"]),
            duration=int(d["duration"]),
            pitch=int(d.get("pitch", 60)),
            velocity=int(d.get("velocity", 100)),
            off_velocity=int(d.get("off_velocity", 64)),
        )


@dataclass(order=True)
class ControlChange:
    tick: int
    number: int  # controller 0-127
    value: int  # 0-127

    def __post_init__(self) -> None:
        if not (0 <= self.number <= 127):
            raise ValueError(f"controller number out of range: {self.number}")
        if not (0 <= self.value <= 127):
            raise ValueError(f"controller value out of range: {self.value}")
        if self.tick < 0:
            raise ValueError("tick must be >= 0")

    def to_dict(self) -> dict[str, Any]:
        return {"tick": self.tick, "number": self.number, "value": self.value}

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "ControlChange":
        return ControlChange(tick=int(d["tick"]), number=int(d["number"]), value=int(d.get("value", 0)))


@dataclass(order=True)
class PitchBend:
    tick: int
    value: int  # -8192..8191, 0 is centre

    def __post_init__(self) -> None:
        if not (-8192 <= self.value <= 8191):
            raise ValueError(f"pitch bend out of range: {self.value}")
        if self.tick < 0:
            raise ValueError("tick must be >= 0")

    def to_dict(self) -> dict[str, Any]:
        return {"tick": self.tick, "value": self.value}

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "PitchBend":
        return PitchBend(tick=int(d["tick"]), value=int(d.get("value", 0)))


@dataclass
class TempoMarker:
    tick: int
    bpm: float

    def __post_init__(self) -> None:
        if self.bpm <= 0:
            raise ValueError(f"bpm must be > 0: {self.bpm}")

    def to_dict(self) -> dict[str, Any]:
        return {"tick": self.tick, "bpm": self.bpm}

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "TempoMarker":
        return TempoMarker(tick=int(d.get("tick", 0)), bpm=float(d["bpm"]))


@dataclass
class TimeSignatureMarker:
    tick: int
    numerator: int = 4
    denominator: int = 4

    def __post_init__(self) -> None:
        if self.numerator <= 0:
            raise ValueError(f"numerator must be > 0: {self.numerator}")
        # denominators are stored as a power of two in the file format
        if self.denominator <= 0 or self.denominator & (self.denominator - 1):
            raise ValueError(f"denominator must be a power of two: {self.denominator}")

    def to_dict(self) -> dict[str, Any]:
        return {"tick": self.tick, "numerator": self.numerator, "denominator": self.denominator}

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "TimeSignatureMarker":
        return TimeSignatureMarker(
            tick=int(d.get("tick", 0)),
            numerator=int(d.get("numerator", 4)),
            denominator=int(d.get("denominator", 4)),
        )


@dataclass
class Track:
    name: str = ""
    channel: int = 0  # 0-15
    program: int = 0  # GM patch 0-127

    notes: list[Note] = field(default_factory=list)
    # controller number -> events in insertion order
    control_changes: dict[int, list[ControlChange]] = field(default_factory=dict)
    pitch_bends: list[PitchBend] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not (0 <= self.channel <= 15):
            raise ValueError(f"channel out of range: {self.channel}")
        if not (0 <= self.program <= 127):
            raise ValueError(f"program out of range: {self.program}")

    def add_note(self, note: Note) -> Note:
        self.notes.append(note)
        return note

    def add_control_change(self, cc: ControlChange) -> ControlChange:
        self.control_changes.setdefault(cc.number, []).append(cc)
        return cc

    def add_pitch_bend(self, pb: PitchBend) -> PitchBend:
        self.pitch_bends.append(pb)
        return pb

    def iter_control_changes(self) -> list[ControlChange]:
        out: list[ControlChange] = []
        for number in sorted(self.control_changes):
            out.extend(self.control_changes[number])
        return out

    def end_tick(self) -> int:
        ends = [n.end for n in self.notes]
        ends += [cc.tick for cc in self.iter_control_changes()]
        ends += [pb.tick for pb in self.pitch_bends]
        return max(ends, default=0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "channel": self.channel,
            "program": self.program,
            "notes": [n.to_dict() for n in self.notes],
            "control_changes": {
                str(k): [cc.to_dict() for cc in v] for k, v in sorted(self.control_changes.items())
            },
            "pitch_bends": [pb.to_dict() for pb in self.pitch_bends],
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Track":
        t = Track(
            name=str(d.get("name", "") or ""),
            channel=int(d.get("channel", 0)),
            program=int(d.get("program", 0)),
        )
        t.notes = [Note.from_dict(x) for x in d.get("notes", [])]
        ccs = d.get("control_changes", {}) or {}
        t.control_changes = {int(k): [ControlChange.from_dict(x) for x in v] for k, v in ccs.items()}
        t.pitch_bends = [PitchBend.from_dict(x) for x in d.get("pitch_bends", [])]
        return t


@dataclass
class SequenceDocument:
    """A multi-track timed-event document at one fixed resolution."""

    ppq: int = 480
    tracks: list[Track] = field(default_factory=list)
    tempos: list[TempoMarker] = field(default_factory=list)
    time_signatures: list[TimeSignatureMarker] = field(default_factory=list)
    name: str = ""

    def __post_init__(self) -> None:
        if self.ppq <= 0:
            raise ValueError(f"ppq must be > 0: {self.ppq}")

    def add_track(self) -> Track:
        t = Track()
        self.tracks.append(t)
        return t

    def note_count(self) -> int:
        return sum(len(t.notes) for t in self.tracks)

    def end_tick(self) -> int:
        return max((t.end_tick() for t in self.tracks), default=0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "ppq": self.ppq,
            "tempos": [m.to_dict() for m in self.tempos],
            "time_signatures": [m.to_dict() for m in self.time_signatures],
            "tracks": [t.to_dict() for t in self.tracks],
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "SequenceDocument":
        doc = SequenceDocument(ppq=int(d.get("ppq", 480)), name=str(d.get("name", "") or ""))
        doc.tempos = [TempoMarker.from_dict(x) for x in d.get("tempos", [])]
        doc.time_signatures = [TimeSignatureMarker.from_dict(x) for x in d.get("time_signatures", [])]
        doc.tracks = [Track.from_dict(x) for x in d.get("tracks", [])]
        return doc


@dataclass
class InputSpec:
    """One entry of the ordered merge list: a parsed document plus its repeat count.

    Ordering is the position in the list handed to ``combine``.
    """

    name: str
    document: SequenceDocument
    repeat: int = 1

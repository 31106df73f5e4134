from __future__ import annotations

import io
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover
    import mido

from midi_stitch.model.types import (
    ControlChange,
    Note,
    PitchBend,
    SequenceDocument,
    TempoMarker,
    TimeSignatureMarker,
    Track,
)


class ParseError(ValueError):
    """The byte stream is not a readable Standard MIDI File."""


@dataclass
class MidiExportResult:
    path: str
    ticks_per_beat: int


# same-tick ordering: release before new attacks so back-to-back repeats of the
# same pitch don't cut each other off
_ORDER_NOTE_OFF = 0
_ORDER_OTHER = 1
_ORDER_NOTE_ON = 2
_ORDER_ZERO_LENGTH_OFF = 3


def _track_has_events(track: Track) -> bool:
    return bool(track.notes or track.pitch_bends or any(track.control_changes.values()))


def _read_track(mtrack: Any, doc: SequenceDocument) -> Track:
    import mido  # type: ignore

    t = Track()
    channel: int | None = None
    program: int | None = None
    pending: dict[tuple[int, int], deque[tuple[int, int]]] = {}

    tick = 0
    for msg in mtrack:
        tick += msg.time

        if msg.is_meta:
            if msg.type == "track_name" and not t.name:
                t.name = str(msg.name)
            elif msg.type == "set_tempo":
                doc.tempos.append(TempoMarker(tick=tick, bpm=float(mido.tempo2bpm(msg.tempo))))
            elif msg.type == "time_signature":
                doc.time_signatures.append(
                    TimeSignatureMarker(tick=tick, numerator=msg.numerator, denominator=msg.denominator)
                )
            continue

        if hasattr(msg, "channel") and channel is None:
            channel = msg.channel

        if msg.type == "note_on" and msg.velocity > 0:
            pending.setdefault((msg.channel, msg.note), deque()).append((tick, msg.velocity))
        elif msg.type == "note_off" or (msg.type == "note_on" and msg.velocity == 0):
            queue = pending.get((msg.channel, msg.note))
            if not queue:
                continue  # stray release
            start, vel = queue.popleft()
            off_vel = msg.velocity if msg.type == "note_off" else 64
            t.add_note(Note(start=start, duration=tick - start, pitch=msg.note, velocity=vel, off_velocity=off_vel))
        elif msg.type == "control_change":
            t.add_control_change(ControlChange(tick=tick, number=msg.control, value=msg.value))
        elif msg.type == "pitchwheel":
            t.add_pitch_bend(PitchBend(tick=tick, value=msg.pitch))
        elif msg.type == "program_change" and program is None:
            program = msg.program

    # notes never released end at the last event of the track
    for (_, pitch), queue in pending.items():
        for start, vel in queue:
            t.add_note(Note(start=start, duration=tick - start, pitch=pitch, velocity=vel))

    t.notes.sort(key=lambda n: (n.start, n.pitch))
    t.channel = channel or 0
    t.program = program or 0
    return t


def midifile_to_document(mf: Any, *, name: str = "") -> SequenceDocument:
    doc = SequenceDocument(ppq=int(mf.ticks_per_beat), name=name)
    for mtrack in mf.tracks:
        doc.tracks.append(_read_track(mtrack, doc))

    # A type 1 conductor track carries only meta events: it is not a musical track.
    if mf.type == 1 and doc.tracks and not _track_has_events(doc.tracks[0]):
        doc.tracks.pop(0)

    doc.tempos.sort(key=lambda m: m.tick)
    doc.time_signatures.sort(key=lambda m: m.tick)
    return doc


def parse_midi(data: bytes, *, name: str = "") -> SequenceDocument:
    """Parse Standard MIDI File bytes into a SequenceDocument.

    Raises ParseError for anything mido cannot read.
    """

    import mido  # type: ignore

    try:
        mf = mido.MidiFile(file=io.BytesIO(data))
        return midifile_to_document(mf, name=name)
    except (OSError, EOFError, ValueError, KeyError, IndexError, TypeError) as e:
        label = name or "<bytes>"
        raise ParseError(f"not a valid MIDI file: {label} ({e})") from e


def load_midi(path: str | Path) -> SequenceDocument:
    p = Path(path).expanduser()
    return parse_midi(p.read_bytes(), name=p.name)


def _iter_track_events(track: Track) -> list[tuple[int, int, Any]]:
    import mido  # type: ignore

    ch = track.channel
    events: list[tuple[int, int, Any]] = []

    for n in track.notes:
        events.append((n.start, _ORDER_NOTE_ON, mido.Message("note_on", note=n.pitch, velocity=max(1, n.velocity), channel=ch)))
        off_order = _ORDER_ZERO_LENGTH_OFF if n.duration == 0 else _ORDER_NOTE_OFF
        events.append((n.end, off_order, mido.Message("note_off", note=n.pitch, velocity=n.off_velocity, channel=ch)))

    for cc in track.iter_control_changes():
        events.append((cc.tick, _ORDER_OTHER, mido.Message("control_change", control=cc.number, value=cc.value, channel=ch)))

    for pb in track.pitch_bends:
        events.append((pb.tick, _ORDER_OTHER, mido.Message("pitchwheel", pitch=pb.value, channel=ch)))

    # sort is stable: equal keys keep insertion order
    events.sort(key=lambda x: (x[0], x[1]))
    return events


def _append_absolute(mt: Any, events: list[tuple[int, int, Any]]) -> None:
    last_t = 0
    for t, _, msg in events:
        msg.time = t - last_t
        last_t = t
        mt.append(msg)


def document_to_midifile(document: SequenceDocument) -> Any:
    import mido  # type: ignore

    mf = mido.MidiFile(type=1, ticks_per_beat=document.ppq)

    tempo_track = mido.MidiTrack()
    if document.name:
        tempo_track.append(mido.MetaMessage("track_name", name=document.name, time=0))
    meta: list[tuple[int, int, Any]] = []
    for m in document.tempos:
        meta.append((m.tick, _ORDER_OTHER, mido.MetaMessage("set_tempo", tempo=int(mido.bpm2tempo(m.bpm)))))
    for ts in document.time_signatures:
        meta.append(
            (
                ts.tick,
                _ORDER_OTHER,
                mido.MetaMessage("time_signature", numerator=ts.numerator, denominator=ts.denominator),
            )
        )
    meta.sort(key=lambda x: (x[0], x[1]))
    _append_absolute(tempo_track, meta)
    mf.tracks.append(tempo_track)

    for track in document.tracks:
        mt = mido.MidiTrack()
        mt.append(mido.MetaMessage("track_name", name=track.name, time=0))
        mt.append(mido.Message("program_change", program=track.program, channel=track.channel, time=0))
        _append_absolute(mt, _iter_track_events(track))
        mf.tracks.append(mt)

    return mf


def serialize_midi(document: SequenceDocument) -> bytes:
    buf = io.BytesIO()
    document_to_midifile(document).save(file=buf)
    return buf.getvalue()


def export_midi(document: SequenceDocument, path: str | Path) -> MidiExportResult:
    out = Path(path).expanduser()
    out.parent.mkdir(parents=True, exist_ok=True)
    mf = document_to_midifile(document)
    mf.save(out)
    return MidiExportResult(path=str(out), ticks_per_beat=mf.ticks_per_beat)

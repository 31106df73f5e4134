from __future__ import annotations

import logging

import pytest

from midi_stitch.merge import (
    COMBINED_TRACK_NAME,
    EmptyInputError,
    MalformedResolutionError,
    NoAdvancingEventsError,
    combine,
    playthrough_span,
)
from midi_stitch.model.types import (
    ControlChange,
    InputSpec,
    Note,
    PitchBend,
    SequenceDocument,
    TempoMarker,
    TimeSignatureMarker,
    Track,
)


def _doc(ppq: int, *tracks: list[Note], name: str = "") -> SequenceDocument:
    doc = SequenceDocument(ppq=ppq, name=name)
    for notes in tracks:
        t = Track(name=f"T{len(doc.tracks)}")
        t.notes = list(notes)
        doc.tracks.append(t)
    return doc


def _starts(track: Track) -> list[tuple[int, int]]:
    return [(n.start, n.duration) for n in track.notes]


def test_concrete_two_file_scenario() -> None:
    a = _doc(480, [Note(start=0, duration=480, pitch=60)])
    b = _doc(240, [Note(start=0, duration=240, pitch=62)])

    out = combine([InputSpec("a.mid", a, repeat=2), InputSpec("b.mid", b, repeat=1)], 480)

    assert out.ppq == 480
    assert len(out.tracks) == 1
    # B's start is rescaled (0 -> 0) and offset by 480 + 480; its duration is copied as-is.
    assert _starts(out.tracks[0]) == [(0, 480), (480, 480), (960, 240)]
    assert [n.pitch for n in out.tracks[0].notes] == [60, 60, 62]


def test_scale_durations_rescales_note_lengths() -> None:
    b = _doc(240, [Note(start=120, duration=240, pitch=62)])
    out = combine([InputSpec("b.mid", b)], 480, scale_durations=True)
    assert _starts(out.tracks[0]) == [(240, 480)]


def test_scaled_durations_never_overlap_the_next_playthrough() -> None:
    # 3 -> 2 ppq: ticks land on x.5 boundaries and round up
    doc = _doc(3, [Note(start=0, duration=1, pitch=60), Note(start=1, duration=1, pitch=62)])
    span = playthrough_span(doc, 2)

    out = combine([InputSpec("odd.mid", doc, repeat=2)], 2, scale_durations=True)

    notes = out.tracks[0].notes
    first, second = notes[:2], notes[2:]
    assert max(n.end for n in first) == span
    assert min(n.start for n in second) >= max(n.end for n in first)
    assert [(n.start, n.end) for n in notes] == [(0, 1), (1, 1), (1, 2), (2, 2)]


def test_repeat_count_makes_n_offset_copies() -> None:
    doc = _doc(
        480,
        [Note(start=0, duration=240, pitch=60), Note(start=480, duration=480, pitch=64)],
        [Note(start=240, duration=120, pitch=36)],
    )
    span = playthrough_span(doc, 480)
    assert span == 960

    once = combine([InputSpec("x.mid", doc, repeat=1)], 480)
    four = combine([InputSpec("x.mid", doc, repeat=4)], 480)
    assert four.note_count() == 4 * once.note_count()

    for ti, track in enumerate(four.tracks):
        base = [n.start for n in doc.tracks[ti].notes]
        starts = [n.start for n in track.notes]
        per = len(base)
        for k in range(4):
            assert starts[k * per : (k + 1) * per] == [s + k * span for s in base]


def test_consecutive_playthroughs_do_not_overlap() -> None:
    a = _doc(480, [Note(start=0, duration=300, pitch=60), Note(start=100, duration=700, pitch=67)])
    b = _doc(96, [Note(start=0, duration=48, pitch=50)], [Note(start=10, duration=96, pitch=40)])
    a.tracks[0].add_control_change(ControlChange(tick=50, number=1, value=10))
    b.tracks[1].add_pitch_bend(PitchBend(tick=0, value=2000))

    out = combine([InputSpec("a", a, repeat=2), InputSpec("b", b, repeat=2)], 480)

    # segment boundaries: a spans 800, b spans (10 + 96) * 5 = 530
    bounds = [0, 800, 1600, 2130, 2660]
    notes = [n for t in out.tracks for n in t.notes]
    for lo, hi in zip(bounds, bounds[1:]):
        seg = [n for n in notes if lo <= n.start < hi]
        assert seg
    b_notes = [n for n in notes if n.pitch in (50, 40)]
    assert min(n.start for n in b_notes) >= 1600
    assert max(n.start for n in b_notes) >= 2130

    # controller/bend events are rebased the same way
    assert [cc.tick for cc in out.tracks[0].control_changes[1]] == [50, 850]
    assert [pb.tick for pb in out.tracks[1].pitch_bends] == [1600, 2130]


def test_track_alignment_with_mismatched_counts() -> None:
    two = _doc(480, [Note(start=0, duration=480, pitch=60)], [Note(start=0, duration=480, pitch=61)])
    three = _doc(
        480,
        [Note(start=0, duration=240, pitch=70)],
        [Note(start=0, duration=240, pitch=71)],
        [Note(start=0, duration=240, pitch=72)],
    )

    out = combine([InputSpec("two", two), InputSpec("three", three)], 480)

    assert len(out.tracks) == 3
    assert all(t.name == COMBINED_TRACK_NAME for t in out.tracks)
    assert [n.pitch for n in out.tracks[2].notes] == [72]
    assert out.tracks[2].notes[0].start == 480
    assert [n.pitch for n in out.tracks[0].notes] == [60, 70]


def test_tempo_and_meter_come_from_first_input_at_tick_zero() -> None:
    a = _doc(480, [Note(start=0, duration=480, pitch=60)])
    a.tempos = [TempoMarker(tick=0, bpm=100.0), TempoMarker(tick=960, bpm=140.0)]
    a.time_signatures = [TimeSignatureMarker(tick=480, numerator=3, denominator=4)]
    b = _doc(480, [Note(start=0, duration=4800, pitch=60)])
    b.tempos = [TempoMarker(tick=0, bpm=90.0)]
    b.time_signatures = [TimeSignatureMarker(tick=0, numerator=7, denominator=8)]

    out = combine([InputSpec("a", a), InputSpec("b", b)], 480)

    assert [(m.tick, m.bpm) for m in out.tempos] == [(0, 100.0), (0, 140.0)]
    assert [(m.tick, m.numerator, m.denominator) for m in out.time_signatures] == [(0, 3, 4)]
    # source document untouched
    assert a.tempos[1].tick == 960
    assert a.time_signatures[0].tick == 480


def test_first_input_without_tempo_leaves_output_without_tempo() -> None:
    a = _doc(480, [Note(start=0, duration=480, pitch=60)])
    b = _doc(480, [Note(start=0, duration=480, pitch=60)])
    b.tempos = [TempoMarker(tick=0, bpm=90.0)]

    out = combine([InputSpec("a", a), InputSpec("b", b)], 480)
    assert out.tempos == []


def test_zero_note_input_is_rejected() -> None:
    good = _doc(480, [Note(start=0, duration=480, pitch=60)])
    cc_only = SequenceDocument(ppq=480)
    t = Track()
    t.add_control_change(ControlChange(tick=0, number=7, value=100))
    cc_only.tracks.append(t)

    with pytest.raises(NoAdvancingEventsError) as ei:
        combine([InputSpec("good.mid", good), InputSpec("cc_only.mid", cc_only)], 480)
    assert ei.value.input_name == "cc_only.mid"
    assert "cc_only.mid" in str(ei.value)


def test_zero_track_input_is_rejected() -> None:
    with pytest.raises(NoAdvancingEventsError):
        combine([InputSpec("empty.mid", SequenceDocument(ppq=480), repeat=3)], 480)


def test_empty_input_list_is_rejected() -> None:
    with pytest.raises(EmptyInputError):
        combine([], 480)


def test_malformed_resolutions_are_rejected() -> None:
    doc = _doc(480, [Note(start=0, duration=480, pitch=60)])
    with pytest.raises(MalformedResolutionError):
        combine([InputSpec("a", doc)], 0)

    bad = _doc(480, [Note(start=0, duration=480, pitch=60)])
    bad.ppq = 0
    with pytest.raises(MalformedResolutionError) as ei:
        combine([InputSpec("a", doc), InputSpec("bad", bad)], 480)
    assert ei.value.input_name == "bad"


def test_inputs_are_not_mutated() -> None:
    doc = _doc(240, [Note(start=120, duration=240, pitch=60)])
    doc.tracks[0].add_control_change(ControlChange(tick=120, number=10, value=64))
    before = doc.to_dict()

    out = combine([InputSpec("a", doc, repeat=3)], 480)

    assert doc.to_dict() == before
    assert out.tracks[0].notes[0] is not doc.tracks[0].notes[0]


def test_resolution_invariance_within_one_tick() -> None:
    notes = [Note(start=s, duration=d, pitch=60) for s, d in [(0, 100), (37, 61), (250, 5), (333, 111)]]
    low = _doc(480, notes)
    high = _doc(960, [Note(start=n.start * 2, duration=n.duration * 2, pitch=60) for n in notes])

    a = combine([InputSpec("low", low, repeat=3)], 480)
    b = combine([InputSpec("high", high, repeat=3)], 480)

    sa = [n.start for n in a.tracks[0].notes]
    sb = [n.start for n in b.tracks[0].notes]
    assert len(sa) == len(sb)
    assert all(abs(x - y) <= 1 for x, y in zip(sa, sb))


def test_combine_logs_progress(caplog: pytest.LogCaptureFixture) -> None:
    doc = _doc(480, [Note(start=0, duration=480, pitch=60)])
    with caplog.at_level(logging.DEBUG, logger="midi_stitch.merge.combiner"):
        combine([InputSpec("loud.mid", doc, repeat=2)], 480)
    text = caplog.text
    assert "loud.mid" in text
    assert "repeat #2" in text

from __future__ import annotations

import logging
from dataclasses import replace

from midi_stitch.merge.align import PositionalTrackMatcher, TrackMatcher, align_track
from midi_stitch.merge.errors import EmptyInputError, MalformedResolutionError, NoAdvancingEventsError
from midi_stitch.merge.span import playthrough_span
from midi_stitch.merge.timebase import normalize_tick, rebase_tick
from midi_stitch.model.types import (
    InputSpec,
    SequenceDocument,
    TempoMarker,
    TimeSignatureMarker,
    Track,
)

logger = logging.getLogger(__name__)

DEFAULT_PPQ = 480


def _copy_playthrough(
    combined: SequenceDocument,
    source: SequenceDocument,
    *,
    offset: int,
    matcher: TrackMatcher,
    scale_durations: bool,
) -> None:
    src_ppq = source.ppq
    dst_ppq = combined.ppq

    def place(tick: int) -> int:
        return rebase_tick(normalize_tick(tick, src_ppq, dst_ppq), offset)

    for idx, track in enumerate(source.tracks):
        out: Track = align_track(combined, matcher.target_track_index(idx, source), source=track)

        for n in track.notes:
            # Durations stay in source ticks unless explicitly rescaled. A rescaled
            # end rounds exactly like the span does, so it never passes the span.
            if scale_durations:
                dur = normalize_tick(n.end, src_ppq, dst_ppq) - normalize_tick(n.start, src_ppq, dst_ppq)
            else:
                dur = n.duration
            out.add_note(replace(n, start=place(n.start), duration=dur))

        for cc in track.iter_control_changes():
            out.add_control_change(replace(cc, tick=place(cc.tick)))

        for pb in track.pitch_bends:
            out.add_pitch_bend(replace(pb, tick=place(pb.tick)))


def combine(
    inputs: list[InputSpec],
    target_ppq: int = DEFAULT_PPQ,
    *,
    matcher: TrackMatcher | None = None,
    scale_durations: bool = False,
) -> SequenceDocument:
    """Merge ``inputs`` back to back into one document at ``target_ppq``.

    Each input is played ``repeat`` times in list order. After every
    playthrough the running offset advances by that playthrough's span, so the
    next one starts exactly where the furthest note of the previous one ended.

    Tempo and time signature markers come from the first input only and are all
    pinned to tick 0 in the output.

    Raises EmptyInputError, MalformedResolutionError or NoAdvancingEventsError;
    no partial document is ever returned.
    """

    if not inputs:
        raise EmptyInputError()
    if target_ppq <= 0:
        raise MalformedResolutionError(target_ppq)

    matcher = matcher or PositionalTrackMatcher()
    combined = SequenceDocument(ppq=int(target_ppq))

    tempos: list[TempoMarker] = []
    time_signatures: list[TimeSignatureMarker] = []
    captured = False
    offset = 0

    for spec in inputs:
        doc = spec.document
        logger.debug("processing file: %s", spec.name)

        if not captured:
            tempos = list(doc.tempos)
            time_signatures = list(doc.time_signatures)
            captured = True

        if doc.ppq <= 0:
            raise MalformedResolutionError(doc.ppq, spec.name)

        for rep in range(spec.repeat):
            logger.debug("repeat #%d for file %s at tick %d", rep + 1, spec.name, offset)
            _copy_playthrough(combined, doc, offset=offset, matcher=matcher, scale_durations=scale_durations)

            span = playthrough_span(doc, combined.ppq)
            logger.debug("span for repeat #%d of %s is %d", rep + 1, spec.name, span)
            if span == 0:
                raise NoAdvancingEventsError(spec.name)
            offset += span

    combined.tempos = [replace(m, tick=0) for m in tempos]
    combined.time_signatures = [replace(m, tick=0) for m in time_signatures]

    logger.info(
        "combined %d file(s) into %d track(s), %d note(s), %d ticks",
        len(inputs),
        len(combined.tracks),
        combined.note_count(),
        offset,
    )
    return combined

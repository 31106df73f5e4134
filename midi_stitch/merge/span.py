from __future__ import annotations

from midi_stitch.merge.timebase import normalize_tick
from midi_stitch.model.types import SequenceDocument


def playthrough_span(document: SequenceDocument, target_ppq: int) -> int:
    """Furthest note end of one playthrough, in ``target_ppq`` ticks (no offset).

    Controllers and pitch bends have no duration and never extend the span.
    Returns 0 when the document has no notes.
    """

    span = 0
    for track in document.tracks:
        for n in track.notes:
            end = normalize_tick(n.start + n.duration, document.ppq, target_ppq)
            if end > span:
                span = end
    return span

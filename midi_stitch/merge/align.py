from __future__ import annotations

from typing import Protocol

from midi_stitch.model.types import SequenceDocument, Track

COMBINED_TRACK_NAME = "Tracks"


class TrackMatcher(Protocol):
    """Decides which output track a source track lands on."""

    def target_track_index(self, source_index: int, source_document: SequenceDocument) -> int: ...


class PositionalTrackMatcher:
    """Track i of every input goes to track i of the output."""

    def target_track_index(self, source_index: int, source_document: SequenceDocument) -> int:
        return source_index


def align_track(combined: SequenceDocument, index: int, *, source: Track | None = None) -> Track:
    """Return output track ``index``, appending empty tracks until it exists.

    A track created for ``index`` borrows channel/program from ``source`` (its
    first contributor). Names are always reset to COMBINED_TRACK_NAME.
    """

    if index < 0:
        raise ValueError(f"track index must be >= 0: {index}")

    created = len(combined.tracks) <= index
    while len(combined.tracks) <= index:
        combined.add_track()

    track = combined.tracks[index]
    if created and source is not None:
        track.channel = source.channel
        track.program = source.program
    track.name = COMBINED_TRACK_NAME
    return track

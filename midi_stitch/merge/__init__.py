"""Back-to-back merging of sequence documents.

Core pipeline:
- normalize_tick / rebase_tick: move a tick to the combined resolution and offset
- align_track: positional track matching, tracks created on demand
- playthrough_span: how far one playthrough reaches
- combine(inputs, target_ppq) -> SequenceDocument
"""

from .align import COMBINED_TRACK_NAME, PositionalTrackMatcher, TrackMatcher, align_track
from .combiner import DEFAULT_PPQ, combine
from .errors import CombineError, EmptyInputError, MalformedResolutionError, NoAdvancingEventsError
from .span import playthrough_span
from .timebase import normalize_tick, rebase_tick, round_half_away

__all__ = [
    "COMBINED_TRACK_NAME",
    "DEFAULT_PPQ",
    "CombineError",
    "EmptyInputError",
    "MalformedResolutionError",
    "NoAdvancingEventsError",
    "PositionalTrackMatcher",
    "TrackMatcher",
    "align_track",
    "combine",
    "normalize_tick",
    "playthrough_span",
    "rebase_tick",
    "round_half_away",
]

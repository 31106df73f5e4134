from __future__ import annotations

import math
from fractions import Fraction

from midi_stitch.merge.errors import MalformedResolutionError


def round_half_away(value: Fraction | float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3).

    Every tick conversion goes through here so repeated offsets never drift on
    inconsistent tie-breaking.
    """

    if value >= 0:
        return int(math.floor(value + Fraction(1, 2)))
    return -int(math.floor(-value + Fraction(1, 2)))


def normalize_tick(tick: int, source_ppq: int, target_ppq: int) -> int:
    """Convert a tick from ``source_ppq`` to ``target_ppq``.

    Uses exact rational arithmetic, so 1/3-style ratios cannot pick up float
    error before rounding.
    """

    if source_ppq <= 0:
        raise MalformedResolutionError(source_ppq)
    if target_ppq <= 0:
        raise MalformedResolutionError(target_ppq)
    if source_ppq == target_ppq:
        return int(tick)
    return round_half_away(Fraction(int(tick) * int(target_ppq), int(source_ppq)))


def rebase_tick(tick: int, offset: int) -> int:
    return int(tick) + int(offset)

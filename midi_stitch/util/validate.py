from __future__ import annotations

import re
from typing import Any

from midi_stitch.util.limits import MAX_PPQ, MAX_REPEAT, MIN_PPQ

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_repeat(value: Any) -> int:
    """Coerce a user-entered repeat count.

    Reads the leading integer ("2.5" -> 2, "3x" -> 3); anything without a
    positive one becomes 1 ("", "abc", 0, -3).
    """

    m = _LEADING_INT.match(str(value))
    if m is None:
        return 1
    n = int(m.group(1))
    if n < 1:
        return 1
    return min(n, MAX_REPEAT)


def parse_ppq(value: Any) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"ppq must be an integer, got: {value!r}") from e
    if not (MIN_PPQ <= n <= MAX_PPQ):
        raise ValueError(f"ppq out of range ({MIN_PPQ}..{MAX_PPQ}): {n}")
    return n

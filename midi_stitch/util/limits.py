from __future__ import annotations

"""Hard limits for merge inputs.

Enforced where user-edited values enter (repeat counts, CLI/plan ppq).
"""

MAX_REPEAT = 999
MIN_PPQ = 1
MAX_PPQ = 32767  # SMF time division is 15 bits in metrical mode

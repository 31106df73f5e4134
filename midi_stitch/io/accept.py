from __future__ import annotations

from pathlib import PurePath

MIDI_MIME_TYPES = frozenset({"audio/midi", "audio/x-midi"})
MIDI_EXTENSIONS = frozenset({".mid", ".midi"})


def is_midi_file(name: str, mime: str | None = None) -> bool:
    """Cheap pre-parse filter: MIME type or file extension says MIDI.

    Passing this does not mean the file parses; see io.midi.parse_midi.
    """

    if mime and mime.strip().lower() in MIDI_MIME_TYPES:
        return True
    return PurePath(str(name)).suffix.lower() in MIDI_EXTENSIONS

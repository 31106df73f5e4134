from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from midi_stitch.io.accept import is_midi_file
from midi_stitch.io.midi import ParseError, load_midi
from midi_stitch.model.types import InputSpec
from midi_stitch.util.validate import parse_repeat


@dataclass
class LoadResult:
    inputs: list[InputSpec]
    errors: list[str]
    skipped: list[str]


def move_input(inputs: list[InputSpec], old_index: int, new_index: int) -> list[InputSpec]:
    """Return a new list with the entry at ``old_index`` moved to ``new_index``."""

    out = list(inputs)
    if old_index == new_index:
        return out
    item = out.pop(old_index)
    out.insert(new_index, item)
    return out


def remove_input(inputs: list[InputSpec], index: int) -> list[InputSpec]:
    return [s for i, s in enumerate(inputs) if i != index]


def set_repeat(spec: InputSpec, value: object) -> InputSpec:
    spec.repeat = parse_repeat(value)
    return spec


def load_inputs(entries: Iterable[str | Path | tuple[str | Path, object]]) -> LoadResult:
    """Parse files into InputSpecs, keeping good ones and collecting errors.

    Each entry is a path or a ``(path, repeat)`` pair. Files that fail the
    extension filter are listed in ``skipped``; files that fail to parse
    are reported in ``errors``.
    """

    inputs: list[InputSpec] = []
    errors: list[str] = []
    skipped: list[str] = []

    for entry in entries:
        if isinstance(entry, tuple):
            path, repeat = Path(entry[0]), parse_repeat(entry[1])
        else:
            path, repeat = Path(entry), 1

        if not is_midi_file(path.name):
            skipped.append(str(path))
            continue

        try:
            doc = load_midi(path)
        except FileNotFoundError:
            errors.append(f'File "{path.name}" not found.')
            continue
        except (OSError, ParseError):
            errors.append(f'File "{path.name}" is not a valid MIDI file.')
            continue

        inputs.append(InputSpec(name=path.name, document=doc, repeat=repeat))

    return LoadResult(inputs=inputs, errors=errors, skipped=skipped)

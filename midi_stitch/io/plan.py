from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from midi_stitch.util.validate import parse_ppq, parse_repeat


@dataclass(frozen=True)
class PlanEntry:
    path: str
    repeat: int = 1


@dataclass(frozen=True)
class MergePlan:
    """An ordered merge list written by hand.

    Minimal v1 format:

    version: 1
    ppq: 480              # optional, combined resolution
    output: combined.mid  # optional
    inputs:
      - path: intro.mid
        repeat: 2
      - verse.mid         # bare string means repeat 1

    Relative paths resolve against the plan file's directory.
    """

    version: int = 1
    ppq: int | None = None
    output: str | None = None
    inputs: list[PlanEntry] = field(default_factory=list)


def _parse_entry(raw: Any, *, index: int, base: Path) -> PlanEntry:
    if isinstance(raw, str):
        path, repeat = raw, 1
    elif isinstance(raw, dict):
        if not raw.get("path"):
            raise ValueError(f"inputs[{index}]: missing required field: path")
        path, repeat = str(raw["path"]), parse_repeat(raw.get("repeat", 1))
    else:
        raise ValueError(f"inputs[{index}]: expected a path string or a mapping, got: {raw!r}")

    p = Path(path).expanduser()
    if not p.is_absolute():
        p = base / p
    return PlanEntry(path=str(p), repeat=repeat)


def parse_plan(data: Any, *, base_dir: Path | None = None) -> MergePlan:
    if not isinstance(data, dict):
        raise ValueError("merge plan must be a mapping/object")

    version = int(data.get("version", 1) or 1)
    if version != 1:
        raise ValueError(f"unsupported merge plan version: {version}")

    raw_inputs = data.get("inputs")
    if not isinstance(raw_inputs, list) or not raw_inputs:
        raise ValueError("merge plan needs a non-empty 'inputs' list")

    base = base_dir or Path.cwd()
    entries = [_parse_entry(x, index=i, base=base) for i, x in enumerate(raw_inputs)]

    ppq = data.get("ppq")
    output = data.get("output")
    if output is not None:
        out = Path(str(output)).expanduser()
        output = str(out if out.is_absolute() else base / out)

    return MergePlan(
        version=version,
        ppq=parse_ppq(ppq) if ppq is not None else None,
        output=output,
        inputs=entries,
    )


def load_plan(path: str | Path) -> MergePlan:
    p = Path(path).expanduser()
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    return parse_plan(data, base_dir=p.parent)

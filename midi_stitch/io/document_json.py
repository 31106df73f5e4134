from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from midi_stitch.model.types import SequenceDocument

SCHEMA_VERSION = 1


def document_to_json(document: SequenceDocument) -> str:
    payload = {"schema_version": SCHEMA_VERSION, **document.to_dict()}
    return json.dumps(payload, indent=2, sort_keys=True) + "\n"


def load_document(path: str | Path) -> SequenceDocument:
    p = Path(path)
    data: dict[str, Any] = json.loads(p.read_text(encoding="utf-8"))
    schema = int(data.get("schema_version", SCHEMA_VERSION) or SCHEMA_VERSION)
    if schema > SCHEMA_VERSION:
        raise ValueError(f"unsupported document schema_version: {schema}")
    return SequenceDocument.from_dict(data)


def save_document(document: SequenceDocument, path: str | Path) -> str:
    out_path = Path(path).expanduser()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(document_to_json(document), encoding="utf-8")
    return str(out_path)

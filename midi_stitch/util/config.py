from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from midi_stitch.merge.combiner import DEFAULT_PPQ


def default_config_dir() -> Path:
    return Path.home() / ".config" / "midi-stitch"


def default_config_path() -> Path:
    return default_config_dir() / "config.json"


@dataclass
class AppConfig:
    default_ppq: int = DEFAULT_PPQ
    output_dir: str = "out"
    log_level: str = "WARNING"  # DEBUG, INFO, WARNING, ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "default_ppq": self.default_ppq,
            "output_dir": self.output_dir,
            "log_level": self.log_level,
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "AppConfig":
        return AppConfig(
            default_ppq=int(d.get("default_ppq", DEFAULT_PPQ) or DEFAULT_PPQ),
            output_dir=str(d.get("output_dir") or "out"),
            log_level=str(d.get("log_level") or "WARNING").upper(),
        )


def load_config(path: Path | None = None) -> AppConfig:
    p = path or default_config_path()
    if not p.exists():
        return AppConfig()
    data = json.loads(p.read_text(encoding="utf-8"))
    return AppConfig.from_dict(data)


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    p = path or default_config_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(cfg.to_dict(), indent=2, sort_keys=True) + "\n", encoding="utf-8")
    return p

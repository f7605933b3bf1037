"""Persist and load CLI settings profiles."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

from pypickem.config.settings import Settings


@dataclass
class SettingsProfile:
    overrides: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path) -> "SettingsProfile":
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Settings profile {path} must contain a JSON object")
        return cls(overrides=data.get("settings", {}))

    def save(self, path: Path) -> None:
        payload = {"settings": self.overrides}
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def apply(self, base: Settings) -> Settings:
        return base.with_overrides(self.overrides)

"""Run report model and export helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

import cbor2

CHECKPOINTS = ("baseline", "head", "base", "diffhead")


@dataclass(slots=True)
class PipelineReport:
    prefix: str
    checkpoints: dict[str, str] = field(default_factory=dict)
    diff_path: Path | None = None
    diff_applied: bool = False
    drift: list[str] = field(default_factory=list)
    remote_outcome: str | None = None
    fetch_outcomes: dict[str, str] = field(default_factory=dict)
    pushed: list[str] = field(default_factory=list)
    pull_request_number: int | None = None
    pull_request_url: str | None = None
    schema_version: int = 1

    def tag(self, name: str) -> str:
        return f"{self.prefix}-{name}"

    def to_json(self, path: str | Path | None = None) -> str:
        encoded = json.dumps(self._payload(), indent=2, sort_keys=True) + "\n"
        if path is not None:
            Path(path).write_text(encoded, encoding="utf-8")
        return encoded

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        encoded = cbor2.dumps(self._payload(), canonical=True)
        if path is not None:
            Path(path).write_bytes(encoded)
        return encoded

    def _payload(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "schema_version": self.schema_version,
            "prefix": self.prefix,
            "checkpoints": [
                {"name": name, "commit": self.checkpoints[name]}
                for name in CHECKPOINTS
                if name in self.checkpoints
            ],
            "diff_path": str(self.diff_path) if self.diff_path is not None else None,
            "diff_applied": self.diff_applied,
            "drift": list(self.drift),
            "remote_outcome": self.remote_outcome,
            "fetch_outcomes": dict(sorted(self.fetch_outcomes.items())),
            "pushed": list(self.pushed),
        }
        if self.pull_request_number is not None:
            payload["pull_request"] = {
                "number": self.pull_request_number,
                "url": self.pull_request_url,
            }
        return payload

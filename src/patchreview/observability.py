"""Structured logging and observability helpers."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TextIO


@dataclass(slots=True)
class StructuredLogger:
    records: list[dict[str, Any]] = field(default_factory=list)
    stream: TextIO | None = None

    def log(
        self,
        *,
        operation: str,
        message: str,
        checkpoint: str | None = None,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        record: dict[str, Any] = {
            "level": level,
            "operation": operation,
            "checkpoint": checkpoint,
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        self.records.append(record)
        if self.stream is not None:
            label = f"{operation}[{checkpoint}]" if checkpoint else operation
            self.stream.write(f"[{level}] {label}: {message}\n")

    def warning(self, *, operation: str, message: str, **kwargs: Any) -> None:
        self.log(operation=operation, message=message, level="warning", **kwargs)

    @contextmanager
    def group(self, name: str, *, checkpoint: str | None = None) -> Iterator[None]:
        """Bracket a pipeline stage with start/end records for CI log folding."""
        self.log(operation="group", checkpoint=checkpoint, message=f"start {name}")
        try:
            yield
        finally:
            self.log(operation="group", checkpoint=checkpoint, message=f"end {name}")

    def records_for_operation(self, operation: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("operation") == operation]

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(record, sort_keys=True) for record in self.records]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path

"""Helpers shared by the fetcher variants."""

from __future__ import annotations

from pathlib import Path

from patchreview.errors import FetchError


def ensure_parents_exist(destination: Path, *, operation: str) -> None:
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FetchError(
            "Unable to create the destination's parent directory.",
            hint="Check permissions and free space for the working directory.",
            context={"operation": operation, "path": str(destination.parent), "error": str(exc)},
        ) from exc

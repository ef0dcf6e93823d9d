"""Fetch upstream sources from a path on the local filesystem."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlsplit

from patchreview.errors import FetchError
from patchreview.fetch.base import ensure_parents_exist
from patchreview.locator import SourceLocator


@dataclass(frozen=True, slots=True)
class LocalFetcher:
    locator: SourceLocator

    @property
    def source(self) -> Path:
        # file:///abs/dir carries the path; file://rel/dir carries it in the authority.
        parts = urlsplit(self.locator.uri)
        host = parts.netloc.rpartition("@")[2]
        return Path(unquote(host + parts.path))

    def fetch(self, destination: str | Path) -> Path:
        """Copy the source tree into ``destination`` and return it."""
        destination = Path(destination)
        source = self.source
        if not source.exists():
            raise FetchError(
                "Local source path does not exist.",
                hint="Point the upstream URI at an existing file or directory.",
                context={"operation": "fetch_local", "source": str(source)},
            )
        ensure_parents_exist(destination, operation="fetch_local")
        try:
            if source.is_dir():
                shutil.copytree(source, destination, symlinks=True, dirs_exist_ok=True)
            else:
                destination.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, destination / source.name)
        except (OSError, shutil.Error) as exc:
            raise FetchError(
                "Copying the local source failed.",
                hint="Check read permissions on the source and free space at the destination.",
                context={
                    "operation": "fetch_local",
                    "source": str(source),
                    "destination": str(destination),
                    "error": str(exc),
                },
            ) from exc
        return destination

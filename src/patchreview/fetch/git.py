"""Shallow git clone of upstream sources, stripped of repository metadata."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlsplit, urlunsplit

from patchreview.errors import FetchError
from patchreview.fetch.base import ensure_parents_exist
from patchreview.locator import SourceLocator
from patchreview.process import run_command

DEFAULT_DEPTH = 1
METADATA_ENTRIES = (".git", ".gitignore")


@dataclass(frozen=True, slots=True)
class GitFetcher:
    locator: SourceLocator
    depth: int = DEFAULT_DEPTH

    @property
    def remote(self) -> str:
        """Clone URL: ``git+`` transport prefix and fragment removed."""
        parts = urlsplit(self.locator.uri)
        scheme = parts.scheme
        if scheme.lower().startswith("git+"):
            scheme = scheme[len("git+") :]
        return urlunsplit(parts._replace(scheme=scheme, fragment=""))

    @property
    def ref(self) -> str | None:
        return urlsplit(self.locator.uri).fragment or None

    def fetch(self, destination: str | Path) -> Path:
        destination = Path(destination)
        ensure_parents_exist(destination, operation="fetch_git")

        argv = ["git", "clone", f"--depth={self.depth}"]
        if self.ref is not None:
            argv.append(f"--branch={self.ref}")
        argv.extend([self.remote, str(destination)])
        result = run_command(argv)
        if not result.ok:
            raise FetchError(
                "Git clone failed.",
                hint="Check the upstream URI, credentials, and requested ref.",
                context={
                    "operation": "fetch_git",
                    "argv": self.locator.redact(result.command),
                    "stderr": self.locator.redact(result.stderr),
                },
            )

        _remove_metadata(destination)
        return destination


def _remove_metadata(destination: Path) -> None:
    for name in METADATA_ENTRIES:
        entry = destination / name
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        elif entry.exists() or entry.is_symlink():
            entry.unlink()

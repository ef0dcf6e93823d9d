"""Upstream source acquisition, selected once from the locator scheme."""

from __future__ import annotations

from pathlib import Path

from patchreview.errors import ConfigurationError
from patchreview.locator import SourceLocator

from .git import GitFetcher
from .http import ArchiveFetcher
from .local import LocalFetcher

Fetcher = LocalFetcher | GitFetcher | ArchiveFetcher


def create_fetcher(locator: SourceLocator, *, tmp_dir: str | Path | None = None) -> Fetcher:
    scheme = locator.scheme
    if scheme == "file":
        return LocalFetcher(locator)
    if scheme == "git" or scheme.startswith("git+"):
        return GitFetcher(locator)
    if scheme in ("http", "https"):
        if tmp_dir is None:
            return ArchiveFetcher(locator)
        return ArchiveFetcher(locator, tmp_dir=Path(tmp_dir))
    raise ConfigurationError(
        f"Unknown fetcher scheme: {scheme}",
        hint="Use a file://, git://, git+<transport>://, http:// or https:// upstream URI.",
        context={"operation": "create_fetcher", "uri": locator.redacted, "scheme": scheme},
    )


__all__ = [
    "ArchiveFetcher",
    "Fetcher",
    "GitFetcher",
    "LocalFetcher",
    "create_fetcher",
]

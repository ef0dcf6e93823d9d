"""Ordered patch-set application via the ``patch`` tool."""

from __future__ import annotations

import glob
import os
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from patchreview.errors import PatchError
from patchreview.process import CommandResult, run_command

DEFAULT_STRIP = 1

_PATCHING_FILE = re.compile(r"^patching file (?P<file>.+)$")
_DRIFTED_HUNK = re.compile(r"^Hunk #\d+ succeeded at .*$")


@dataclass(frozen=True, slots=True)
class Patch:
    file: str
    strip: int | None = None

    @property
    def effective_strip(self) -> int:
        if self.strip is not None:
            return self.strip
        return DEFAULT_STRIP

    def apply(self, directory: str | Path) -> CommandResult:
        return run_command(
            [
                "patch",
                f"--directory={directory}",
                f"--strip={self.effective_strip}",
                f"--input={os.path.abspath(self.file)}",
            ]
        )


@dataclass(frozen=True, slots=True)
class PatchApplication:
    directory: Path
    applied: tuple[str, ...] = ()
    drift: tuple[str, ...] = ()


class Manager:
    """Ordered set of patches: explicit additions and glob expansions in addition order."""

    def __init__(self) -> None:
        self._patches: list[Patch] = []
        self._sealed = False

    @property
    def patches(self) -> tuple[Patch, ...]:
        return tuple(self._patches)

    def __len__(self) -> int:
        return len(self._patches)

    def add_patch(self, file: str | Path, strip: int | None = None) -> None:
        self._ensure_open()
        if strip is not None and strip < 0:
            raise PatchError(
                "Patch strip level must be zero or positive.",
                context={"file": str(file), "strip": str(strip)},
            )
        self._patches.append(Patch(str(file), strip))

    def add_from_glob(
        self,
        patterns: str | Sequence[str],
        *,
        root: str | Path | None = None,
        follow_symlinks: bool = True,
        strip: int | None = None,
    ) -> list[str]:
        """Append the sorted matches of ``patterns`` and return them."""
        self._ensure_open()
        matches = expand_patterns(patterns, root=root, follow_symlinks=follow_symlinks)
        for match in matches:
            self._patches.append(Patch(match, strip))
        return matches

    def patch(self, directory: str | Path) -> PatchApplication:
        """Apply every patch in order; the first failure aborts the rest."""
        self._sealed = True
        directory = Path(directory)
        applied: list[str] = []
        drift: list[str] = []
        for item in self._patches:
            result = item.apply(directory)
            if not result.ok:
                raise PatchError(
                    f"Failed to apply {item.file} in {directory}.",
                    hint="Refresh the patch against the current sources; conflicts are not resolved.",
                    context={
                        "file": item.file,
                        "directory": str(directory),
                        "strip": str(item.effective_strip),
                        "returncode": str(result.returncode),
                        "stdout": result.stdout,
                        "stderr": result.stderr,
                    },
                )
            applied.append(item.file)
            drift.extend(f"{item.file}: {line}" for line in _drifted_hunks(result.stdout))
        return PatchApplication(directory=directory, applied=tuple(applied), drift=tuple(drift))

    def _ensure_open(self) -> None:
        if self._sealed:
            raise PatchError(
                "Patch set cannot change once application has begun.",
                hint="Build the complete patch set before calling patch().",
            )


def expand_patterns(
    patterns: str | Sequence[str],
    *,
    root: str | Path | None = None,
    follow_symlinks: bool = True,
) -> list[str]:
    """Expand glob patterns into a lexicographically sorted list of files.

    ``patterns`` may be a newline separated string. Blank lines and ``#``
    comments are ignored and a leading ``!`` excludes matches.
    """
    base = Path(root) if root is not None else Path.cwd()
    included: set[str] = set()
    excluded: set[str] = set()
    for pattern in _split_patterns(patterns):
        negate = pattern.startswith("!")
        if negate:
            pattern = pattern[1:].strip()
        found = {
            os.path.normpath(match)
            for match in glob.glob(os.path.join(base, pattern), recursive=True)
            if os.path.isfile(match)
        }
        (excluded if negate else included).update(found)

    matches = included - excluded
    if not follow_symlinks:
        matches = {match for match in matches if not _through_symlink(Path(match), base)}
    return sorted(matches)


def _split_patterns(patterns: str | Sequence[str]) -> Iterable[str]:
    lines = patterns.splitlines() if isinstance(patterns, str) else list(patterns)
    for line in lines:
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            yield stripped


def _through_symlink(path: Path, root: Path) -> bool:
    try:
        relative = path.relative_to(root)
        current = root
    except ValueError:
        relative = path.relative_to(path.anchor)
        current = Path(path.anchor)
    for part in relative.parts:
        current = current / part
        if current.is_symlink():
            return True
    return False


def _drifted_hunks(output: str) -> list[str]:
    drifted: list[str] = []
    current = ""
    for line in output.splitlines():
        patching = _PATCHING_FILE.match(line)
        if patching is not None:
            current = patching.group("file")
            continue
        if _DRIFTED_HUNK.match(line):
            drifted.append(f"{current} {line}".strip())
    return drifted


__all__ = ["DEFAULT_STRIP", "Manager", "Patch", "PatchApplication", "expand_patterns"]

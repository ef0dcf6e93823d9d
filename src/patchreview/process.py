"""External tool invocation for git, curl, tar, and patch."""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class CommandResult:
    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def command(self) -> str:
        return " ".join(self.argv)


def run_command(argv: Sequence[str], *, cwd: str | Path | None = None) -> CommandResult:
    """Run a tool to completion and capture its output without raising on failure."""
    command = tuple(str(arg) for arg in argv)
    completed = subprocess.run(
        list(command),
        cwd=str(cwd) if cwd is not None else None,
        check=False,
        text=True,
        capture_output=True,
        stdin=subprocess.DEVNULL,
    )
    return CommandResult(
        argv=command,
        returncode=completed.returncode,
        stdout=completed.stdout.strip(),
        stderr=completed.stderr.strip(),
    )


__all__ = ["CommandResult", "run_command"]

"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from patchreview.process import CommandResult


@dataclass
class _Response:
    tool: str
    match: str | None
    returncode: int
    stdout: str
    stderr: str


@dataclass
class CommandRecorder:
    """Stand-in for ``run_command`` that records argv and replays canned results."""

    calls: list[tuple[str, ...]] = field(default_factory=list)
    responses: list[_Response] = field(default_factory=list)

    def respond(
        self,
        tool: str,
        *,
        match: str | None = None,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.responses.append(_Response(tool, match, returncode, stdout, stderr))

    def fail(self, tool: str, *, match: str | None = None, stderr: str = "failed") -> None:
        self.respond(tool, match=match, returncode=1, stderr=stderr)

    def tools(self) -> list[str]:
        return [argv[0] for argv in self.calls]

    def __call__(self, argv: Sequence[str], *, cwd: str | Path | None = None) -> CommandResult:
        command = tuple(str(arg) for arg in argv)
        self.calls.append(command)
        for response in self.responses:
            if command[0] != response.tool:
                continue
            if response.match is not None and not any(response.match in arg for arg in command):
                continue
            return CommandResult(command, response.returncode, response.stdout, response.stderr)
        return CommandResult(command, 0, "", "")


@pytest.fixture
def recorder(monkeypatch: pytest.MonkeyPatch) -> CommandRecorder:
    """Replace external tool invocations in fetchers and the patcher."""
    fake = CommandRecorder()
    monkeypatch.setattr("patchreview.patch.run_command", fake)
    monkeypatch.setattr("patchreview.fetch.git.run_command", fake)
    monkeypatch.setattr("patchreview.fetch.http.run_command", fake)
    return fake

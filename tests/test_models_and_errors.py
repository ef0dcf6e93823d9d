from pathlib import Path

from patchreview.errors import (
    CheckpointError,
    ConfigurationError,
    ErrorCode,
    FetchError,
    HostingError,
    PatchError,
)
from patchreview.process import CommandResult, run_command


def test_error_codes_are_stable_and_machine_readable() -> None:
    errors = [
        ConfigurationError("bad input"),
        FetchError("download failed"),
        PatchError("hunk rejected"),
        CheckpointError("git failed"),
        HostingError("api failed"),
    ]
    assert [error.code for error in errors] == [
        ErrorCode.CONFIGURATION.value,
        ErrorCode.FETCH.value,
        ErrorCode.PATCH.value,
        ErrorCode.CHECKPOINT.value,
        ErrorCode.HOSTING.value,
    ]


def test_error_message_lists_hint_and_non_empty_context() -> None:
    exc = PatchError(
        "Failed to apply fix.patch in tree.",
        hint="Rebase the patch.",
        context={"file": "fix.patch", "stdout": ""},
    )

    rendered = str(exc)

    assert rendered.splitlines() == [
        "Failed to apply fix.patch in tree.",
        "Hint: Rebase the patch.",
        "  file: fix.patch",
    ]
    payload = exc.to_dict()
    assert payload["code"] == "E_PATCH"
    assert payload["hint"] == "Rebase the patch."
    assert payload["context"] == {"file": "fix.patch", "stdout": ""}


def test_workflow_annotation_stays_on_one_line() -> None:
    exc = CheckpointError(
        "Git command failed.",
        context={"stderr": "fatal: bad revision\n100% broken"},
    )

    annotation = exc.to_workflow_command()

    assert annotation == (
        "::error title=E_CHECKPOINT::Git command failed.%0A"
        "  stderr: fatal: bad revision%0A100%25 broken"
    )
    assert "\n" not in annotation


def test_explicit_code_overrides_component_default() -> None:
    exc = FetchError("clone failed", code=ErrorCode.CHECKPOINT)

    assert exc.code == "E_CHECKPOINT"
    assert isinstance(exc, FetchError)


def test_command_result_reports_status_and_command() -> None:
    result = CommandResult(argv=("git", "status"), returncode=1, stdout="", stderr="fatal")

    assert not result.ok
    assert result.command == "git status"


def test_run_command_captures_stripped_output(tmp_path: Path) -> None:
    result = run_command(["git", "--version"], cwd=tmp_path)

    assert result.ok
    assert result.stdout.startswith("git version")
    assert not result.stdout.endswith("\n")


def test_run_command_reports_non_zero_exit(tmp_path: Path) -> None:
    result = run_command(
        ["git", "rev-parse", "--verify", "refs/heads/does-not-exist"],
        cwd=tmp_path,
    )

    assert result.returncode != 0
    assert result.stderr

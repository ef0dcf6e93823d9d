import shutil
import subprocess
from pathlib import Path

import cbor2
import pytest

from patchreview.cli import build_hosting, build_parser, main
from patchreview.config import PipelineConfig
from patchreview.hosting import GitHubClient


def test_parser_accepts_report_options() -> None:
    args = build_parser().parse_args(["run", "--report", "out.cbor", "--report-format", "cbor"])

    assert args.command == "run"
    assert args.report == Path("out.cbor")
    assert args.report_format == "cbor"
    assert args.log is None


def test_missing_inputs_fail_with_workflow_error(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main(["run"], environ={})

    assert exit_code == 1
    err = capsys.readouterr().err
    assert "::error title=E_CONFIGURATION::Input required and not supplied: wrkdir%0A" in err
    assert len(err.splitlines()) == 1


def test_hosting_client_requires_token_and_repository(tmp_path: Path) -> None:
    config = PipelineConfig(working_directory=tmp_path, upstream_uri="file:///src", base_branch="main")
    assert build_hosting(config) is None

    configured = PipelineConfig(
        working_directory=tmp_path,
        upstream_uri="file:///src",
        base_branch="main",
        repository="acme/firmware",
        api_token="t0ken",
    )
    hosting = build_hosting(configured)
    assert isinstance(hosting, GitHubClient)
    assert hosting.repository == "acme/firmware"


@pytest.mark.skipif(shutil.which("patch") is None, reason="GNU patch is not installed.")
def test_run_writes_cbor_report_and_logs(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    upstream = tmp_path / "upstream"
    upstream.mkdir()
    (upstream / "file.txt").write_text("upstream\n", encoding="utf-8")
    workspace = tmp_path / "workspace"
    (workspace / "ci").mkdir(parents=True)
    (workspace / "ci" / "build.conf").write_text("jobs=4\n", encoding="utf-8")
    downstream = _create_downstream(tmp_path)
    work = tmp_path / "work" / "tree"
    environ = {
        "INPUT_WRKDIR": str(work),
        "INPUT_UPSTREAM-URI": upstream.as_uri(),
        "INPUT_BASE-BRANCH": "main",
        "INPUT_DOWNSTREAM-URI": downstream.as_uri(),
        "INPUT_AUXILIARY-FILES": "ci/*.conf",
        "INPUT_PUSH": "false",
        "GITHUB_WORKSPACE": str(workspace),
    }
    report_path = tmp_path / "report.cbor"
    log_path = tmp_path / "run.jsonl"

    exit_code = main(
        ["run", "--report", str(report_path), "--report-format", "cbor", "--log", str(log_path)],
        environ=environ,
    )

    assert exit_code == 0
    report = cbor2.loads(report_path.read_bytes())
    assert report["prefix"] == "patch-review-local"
    names = [entry["name"] for entry in report["checkpoints"]]
    assert names == ["baseline", "head", "base", "diffhead"]
    assert report["pushed"] == []
    assert _run_git(["show", "patch-review-local-baseline:ci/build.conf"], cwd=work) == "jobs=4"
    assert log_path.read_text(encoding="utf-8").strip()
    assert "[info] mark[diffhead]" in capsys.readouterr().err


def _create_downstream(tmp_path: Path) -> Path:
    source = tmp_path / "downstream-src"
    source.mkdir()
    _run_git(["init"], cwd=source)
    _run_git(["checkout", "-b", "main"], cwd=source)
    _run_git(["config", "user.email", "patch-review@example.com"], cwd=source)
    _run_git(["config", "user.name", "Patch Review Test"], cwd=source)
    (source / "file.txt").write_text("downstream\n", encoding="utf-8")
    _run_git(["add", "."], cwd=source)
    _run_git(["commit", "-m", "downstream"], cwd=source)

    bare = tmp_path / "downstream.git"
    _run_git(["clone", "--bare", str(source), str(bare)], cwd=tmp_path)
    return bare


def _run_git(argv: list[str], *, cwd: Path) -> str:
    completed = subprocess.run(
        ["git", *argv],
        cwd=cwd,
        check=False,
        text=True,
        capture_output=True,
    )
    if completed.returncode != 0:
        raise RuntimeError(f"git {' '.join(argv)} failed: {completed.stderr.strip()}")
    return completed.stdout.strip()

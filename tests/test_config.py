import json
from pathlib import Path

import pytest

from patchreview.config import input_name, load_config
from patchreview.errors import ConfigurationError
from patchreview.locator import Credentials


def test_input_names_follow_action_conventions() -> None:
    assert input_name("upstream-uri") == "INPUT_UPSTREAM-URI"
    assert input_name("follow symbolic links") == "INPUT_FOLLOW_SYMBOLIC_LINKS"


def test_load_config_from_inputs_and_pull_request_event(tmp_path: Path) -> None:
    environ = _environ(tmp_path)
    environ.update(
        {
            "INPUT_UPSTREAM-TOKEN": "upstream-secret",
            "INPUT_USERNAME": "bot",
            "INPUT_PASSWORD": "hunter2",
            "INPUT_PATCHES": "patches/*.patch\n\n  vendor/*.diff  \n",
            "INPUT_FOLLOW-SYMBOLIC-LINKS": "false",
        }
    )

    config = load_config(environ)

    assert config.working_directory == Path("vendor/upstream")
    assert config.upstream_uri == "https://example.com/upstream-1.0.tar.gz"
    assert config.upstream_credentials == Credentials(token="upstream-secret")
    assert config.downstream_credentials == Credentials(username="bot", password="hunter2")
    assert config.patches == ("patches/*.patch", "vendor/*.diff")
    assert config.follow_symlinks is False
    assert config.strip == 1
    assert config.push is True
    assert config.base_branch == "main"
    assert config.downstream_uri == "https://github.example/acme/firmware.git"
    assert config.repository == "acme/firmware"
    assert config.prefix == "patch-review-42"
    assert config.pull_request is not None
    assert config.pull_request.head_sha == "0" * 40
    assert config.pull_request.approved is False


def test_review_event_carries_approval_state(tmp_path: Path) -> None:
    environ = _environ(tmp_path, review_state="APPROVED")

    config = load_config(environ)

    assert config.pull_request is not None
    assert config.pull_request.approved is True


def test_api_token_falls_back_to_downstream_token(tmp_path: Path) -> None:
    environ = _environ(tmp_path)
    environ["INPUT_TOKEN"] = "downstream-token"

    assert load_config(environ).api_token == "downstream-token"

    environ["INPUT_GITHUB-TOKEN"] = "api-token"
    assert load_config(environ).api_token == "api-token"


def test_missing_required_input_is_rejected(tmp_path: Path) -> None:
    environ = _environ(tmp_path)
    del environ["INPUT_WRKDIR"]

    with pytest.raises(ConfigurationError) as excinfo:
        load_config(environ)

    assert "wrkdir" in str(excinfo.value)


def test_base_branch_required_without_pull_request() -> None:
    environ = {
        "INPUT_WRKDIR": "tree",
        "INPUT_UPSTREAM-URI": "file:///srv/upstream",
    }

    with pytest.raises(ConfigurationError):
        load_config(environ)

    environ["INPUT_BASE-BRANCH"] = "release"
    config = load_config(environ)
    assert config.base_branch == "release"
    assert config.prefix == "patch-review-local"
    assert config.downstream_uri == ""


def test_invalid_strip_is_rejected(tmp_path: Path) -> None:
    environ = _environ(tmp_path)
    environ["INPUT_STRIP"] = "two"

    with pytest.raises(ConfigurationError):
        load_config(environ)


def test_malformed_event_payload_is_rejected(tmp_path: Path) -> None:
    environ = _environ(tmp_path)
    Path(environ["GITHUB_EVENT_PATH"]).write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_config(environ)


def test_diff_path_sits_beside_working_directory(tmp_path: Path) -> None:
    environ = _environ(tmp_path)
    environ["INPUT_WRKDIR"] = str(tmp_path / "vendor" / "upstream")

    config = load_config(environ)

    assert config.diff_path == tmp_path / "vendor" / "patch-review-42.diff"


def _environ(tmp_path: Path, *, review_state: str | None = None) -> dict[str, str]:
    event: dict[str, object] = {
        "pull_request": {
            "number": 42,
            "base": {"ref": "main"},
            "head": {"ref": "feature/bump", "sha": "0" * 40},
        }
    }
    if review_state is not None:
        event["review"] = {"state": review_state}
    event_path = tmp_path / "event.json"
    event_path.write_text(json.dumps(event), encoding="utf-8")
    return {
        "INPUT_WRKDIR": "vendor/upstream",
        "INPUT_UPSTREAM-URI": "https://example.com/upstream-1.0.tar.gz",
        "GITHUB_EVENT_PATH": str(event_path),
        "GITHUB_REPOSITORY": "acme/firmware",
        "GITHUB_SERVER_URL": "https://github.example",
        "GITHUB_WORKSPACE": str(tmp_path),
    }

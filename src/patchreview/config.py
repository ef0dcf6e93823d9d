"""Pipeline configuration assembled once from the CI environment."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from patchreview.errors import ConfigurationError
from patchreview.locator import Credentials
from patchreview.patch import DEFAULT_STRIP

DEFAULT_PREFIX = "patch-review"
DEFAULT_SERVER_URL = "https://github.com"
DEFAULT_API_URL = "https://api.github.com"


@dataclass(frozen=True, slots=True)
class PullRequestContext:
    """Identity of the pull request that triggered the run."""

    number: int
    base_ref: str
    head_ref: str = ""
    head_sha: str = ""
    approved: bool = False


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    working_directory: Path
    upstream_uri: str
    base_branch: str
    patches: tuple[str, ...] = ()
    upstream_credentials: Credentials = field(default_factory=Credentials)
    downstream_uri: str = ""
    downstream_credentials: Credentials = field(default_factory=Credentials)
    downstream_directory: Path = field(default_factory=Path.cwd)
    auxiliary_files: tuple[str, ...] = ()
    strip: int = DEFAULT_STRIP
    follow_symlinks: bool = True
    push: bool = True
    repository: str = ""
    api_url: str = DEFAULT_API_URL
    api_token: str = ""
    pull_request: PullRequestContext | None = None
    tmp_dir: Path | None = None

    @property
    def prefix(self) -> str:
        if self.pull_request is None:
            return f"{DEFAULT_PREFIX}-local"
        return f"{DEFAULT_PREFIX}-{self.pull_request.number}"

    @property
    def diff_path(self) -> Path:
        working_directory = self.working_directory.absolute()
        return working_directory.parent / f"{self.prefix}.diff"


def input_name(name: str) -> str:
    """Environment variable that carries the action input ``name``."""
    return f"INPUT_{name.replace(' ', '_').upper()}"


def get_input(environ: Mapping[str, str], name: str) -> str:
    return environ.get(input_name(name), "").strip()


def load_config(environ: Mapping[str, str]) -> PipelineConfig:
    """Build a :class:`PipelineConfig` from action inputs and the event payload."""
    working_directory = _required(environ, "wrkdir")
    upstream_uri = _required(environ, "upstream-uri")
    event = _load_event(environ)
    pull_request = _pull_request_context(event)

    base_branch = get_input(environ, "base-branch")
    if not base_branch and pull_request is not None:
        base_branch = pull_request.base_ref
    if not base_branch:
        raise ConfigurationError(
            "Unable to determine the downstream base branch.",
            hint="Run on a pull_request event or set the `base-branch` input.",
            context={"operation": "load_config"},
        )

    repository = environ.get("GITHUB_REPOSITORY", "")
    downstream_uri = get_input(environ, "downstream-uri")
    if not downstream_uri and repository:
        server_url = environ.get("GITHUB_SERVER_URL", DEFAULT_SERVER_URL).rstrip("/")
        downstream_uri = f"{server_url}/{repository}.git"

    downstream_credentials = _credentials(environ, "")
    return PipelineConfig(
        working_directory=Path(working_directory),
        upstream_uri=upstream_uri,
        base_branch=base_branch,
        patches=_lines(get_input(environ, "patches")),
        upstream_credentials=_credentials(environ, "upstream-"),
        downstream_uri=downstream_uri,
        downstream_credentials=downstream_credentials,
        downstream_directory=Path(environ.get("GITHUB_WORKSPACE") or Path.cwd()),
        auxiliary_files=_lines(get_input(environ, "auxiliary-files")),
        strip=_strip(get_input(environ, "strip")),
        follow_symlinks=get_input(environ, "follow-symbolic-links").upper() != "FALSE",
        push=get_input(environ, "push").upper() != "FALSE",
        repository=repository,
        api_url=environ.get("GITHUB_API_URL", DEFAULT_API_URL).rstrip("/"),
        api_token=get_input(environ, "github-token") or downstream_credentials.token,
        pull_request=pull_request,
    )


def _required(environ: Mapping[str, str], name: str) -> str:
    value = get_input(environ, name)
    if not value:
        raise ConfigurationError(
            f"Input required and not supplied: {name}",
            hint=f"Set the `{name}` input in the workflow.",
            context={"operation": "load_config", "variable": input_name(name)},
        )
    return value


def _credentials(environ: Mapping[str, str], prefix: str) -> Credentials:
    return Credentials(
        token=get_input(environ, f"{prefix}token"),
        username=get_input(environ, f"{prefix}username"),
        password=get_input(environ, f"{prefix}password"),
    )


def _lines(value: str) -> tuple[str, ...]:
    return tuple(line.strip() for line in value.splitlines() if line.strip())


def _strip(value: str) -> int:
    if not value:
        return DEFAULT_STRIP
    try:
        strip = int(value)
    except ValueError as exc:
        raise ConfigurationError(
            "The `strip` input must be an integer.",
            context={"operation": "load_config", "strip": value},
        ) from exc
    if strip < 0:
        raise ConfigurationError(
            "The `strip` input must be zero or positive.",
            context={"operation": "load_config", "strip": value},
        )
    return strip


def _load_event(environ: Mapping[str, str]) -> dict[str, Any]:
    event_path = environ.get("GITHUB_EVENT_PATH", "")
    if not event_path:
        return {}
    try:
        parsed = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(
            "Unable to read the event payload.",
            hint="GITHUB_EVENT_PATH must point to a JSON event file.",
            context={"operation": "load_config", "path": event_path, "error": str(exc)},
        ) from exc
    if not isinstance(parsed, dict):
        raise ConfigurationError(
            "Event payload has invalid structure.",
            context={"operation": "load_config", "path": event_path},
        )
    return parsed


def _pull_request_context(event: Mapping[str, Any]) -> PullRequestContext | None:
    pull_request = event.get("pull_request")
    if not isinstance(pull_request, dict):
        return None
    try:
        number = int(pull_request["number"])
        base_ref = str(pull_request["base"]["ref"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError(
            "Pull request payload is missing its number or base ref.",
            context={"operation": "load_config"},
        ) from exc
    head = pull_request.get("head") or {}
    review = event.get("review") or {}
    return PullRequestContext(
        number=number,
        base_ref=base_ref,
        head_ref=str(head.get("ref", "")),
        head_sha=str(head.get("sha", "")),
        approved=str(review.get("state", "")).lower() == "approved",
    )


__all__ = [
    "PipelineConfig",
    "PullRequestContext",
    "get_input",
    "input_name",
    "load_config",
]

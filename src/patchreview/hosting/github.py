"""GitHub REST implementation of the hosting collaborator."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any
from urllib import error, request
from urllib.parse import quote, urlencode

from patchreview.errors import ConfigurationError, HostingError
from patchreview.hosting.base import PullRequest, StatusState

API_VERSION = "2022-11-28"
DEFAULT_API_URL = "https://api.github.com"
TIMEOUT_SECONDS = 30


@dataclass(frozen=True, slots=True)
class GitHubClient:
    repository: str
    token: str
    api_url: str = DEFAULT_API_URL

    def __post_init__(self) -> None:
        owner, _, name = self.repository.partition("/")
        if not owner or not name or "/" in name:
            raise ConfigurationError(
                "Repository must be in `owner/name` form.",
                context={"operation": "github_client", "repository": self.repository},
            )

    @property
    def owner(self) -> str:
        return self.repository.partition("/")[0]

    def ensure_pull_request(self, *, base: str, head: str, title: str, body: str) -> PullRequest:
        query = urlencode({"state": "open", "head": f"{self.owner}:{head}", "base": base})
        existing = self._request(f"{self._repo_url}/pulls?{query}")
        if isinstance(existing, list) and existing:
            return _pull_request(existing[0], base=base, head=head)
        created = self._request(
            f"{self._repo_url}/pulls",
            method="POST",
            data={"title": title, "body": body, "head": head, "base": base},
        )
        return _pull_request(created, base=base, head=head)

    def add_label(self, number: int, label: str) -> None:
        self._request(
            f"{self._repo_url}/issues/{number}/labels",
            method="POST",
            data={"labels": [label]},
        )

    def remove_label(self, number: int, label: str) -> None:
        endpoint = f"{self._repo_url}/issues/{number}/labels/{quote(label, safe='')}"
        self._request(endpoint, method="DELETE", allow_missing=True)

    def set_status(
        self,
        sha: str,
        *,
        state: StatusState,
        context: str,
        description: str,
        target_url: str | None = None,
    ) -> None:
        data: dict[str, Any] = {"state": state, "context": context, "description": description}
        if target_url:
            data["target_url"] = target_url
        self._request(f"{self._repo_url}/statuses/{sha}", method="POST", data=data)

    @property
    def _repo_url(self) -> str:
        return f"{self.api_url.rstrip('/')}/repos/{self.repository}"

    def _request(
        self,
        endpoint: str,
        *,
        method: str = "GET",
        data: dict[str, Any] | None = None,
        allow_missing: bool = False,
    ) -> Any:
        req = request.Request(endpoint, method=method)
        req.add_header("Accept", "application/vnd.github+json")
        req.add_header("X-GitHub-Api-Version", API_VERSION)
        if self.token:
            req.add_header("Authorization", f"Bearer {self.token}")
        if data is not None:
            req.add_header("Content-Type", "application/json; charset=utf-8")
            req.data = json.dumps(data).encode("utf-8")

        try:
            with request.urlopen(req, timeout=TIMEOUT_SECONDS) as response:  # noqa: S310
                payload = response.read().decode("utf-8")
        except error.HTTPError as exc:
            if allow_missing and exc.code == 404:
                return None
            raise HostingError(
                f"GitHub API error ({exc.code}).",
                hint="Check the API token permissions and repository name.",
                context={
                    "operation": f"{method} {endpoint}",
                    "response": exc.read().decode("utf-8", errors="replace"),
                },
            ) from exc
        except error.URLError as exc:
            raise HostingError(
                "Failed to reach the GitHub API.",
                context={"operation": f"{method} {endpoint}", "reason": str(exc.reason)},
            ) from exc
        return json.loads(payload) if payload.strip() else None


def _pull_request(payload: Any, *, base: str, head: str) -> PullRequest:
    if not isinstance(payload, dict) or "number" not in payload:
        raise HostingError(
            "GitHub API returned an unexpected pull request payload.",
            context={"operation": "ensure_pull_request", "head": head, "base": base},
        )
    return PullRequest(
        number=int(payload["number"]),
        url=str(payload.get("html_url", "")),
        base=base,
        head=head,
    )

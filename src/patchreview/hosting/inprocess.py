"""In-process hosting collaborator for tests and local runs.

Keeps pull requests, labels, and commit statuses in memory so the pipeline
can be exercised end to end without network access.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from patchreview.hosting.base import PullRequest, StatusState


@dataclass(frozen=True, slots=True)
class CommitStatus:
    sha: str
    state: StatusState
    context: str
    description: str
    target_url: str | None = None


@dataclass(slots=True)
class InMemoryHostingClient:
    repository: str = "local/repository"
    pull_requests: list[PullRequest] = field(default_factory=list)
    labels: dict[int, set[str]] = field(default_factory=dict)
    statuses: list[CommitStatus] = field(default_factory=list)

    def ensure_pull_request(self, *, base: str, head: str, title: str, body: str) -> PullRequest:
        for pull_request in self.pull_requests:
            if pull_request.base == base and pull_request.head == head:
                return pull_request
        number = len(self.pull_requests) + 1
        pull_request = PullRequest(
            number=number,
            url=f"https://example.invalid/{self.repository}/pull/{number}",
            base=base,
            head=head,
        )
        self.pull_requests.append(pull_request)
        return pull_request

    def add_label(self, number: int, label: str) -> None:
        self.labels.setdefault(number, set()).add(label)

    def remove_label(self, number: int, label: str) -> None:
        self.labels.get(number, set()).discard(label)

    def set_status(
        self,
        sha: str,
        *,
        state: StatusState,
        context: str,
        description: str,
        target_url: str | None = None,
    ) -> None:
        self.statuses.append(
            CommitStatus(
                sha=sha,
                state=state,
                context=context,
                description=description,
                target_url=target_url,
            )
        )

    def latest_status(self, sha: str) -> CommitStatus | None:
        matching = [status for status in self.statuses if status.sha == sha]
        return matching[-1] if matching else None

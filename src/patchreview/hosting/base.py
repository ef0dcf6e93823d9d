"""Protocol for the code-hosting collaborator: pull requests, labels, and commit statuses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

StatusState = Literal["pending", "success", "failure", "error"]

STATUS_CONTEXT = "patch-review"
REVIEW_LABEL = "patch-review"
APPROVED_LABEL = "approved"


@dataclass(frozen=True, slots=True)
class PullRequest:
    number: int
    url: str
    base: str
    head: str


class HostingClient(Protocol):
    def ensure_pull_request(self, *, base: str, head: str, title: str, body: str) -> PullRequest:
        """Return the open pull request for ``head`` into ``base``, creating it if needed."""

    def add_label(self, number: int, label: str) -> None:
        """Attach ``label`` to the pull request."""

    def remove_label(self, number: int, label: str) -> None:
        """Detach ``label``; absent labels are not an error."""

    def set_status(
        self,
        sha: str,
        *,
        state: StatusState,
        context: str,
        description: str,
        target_url: str | None = None,
    ) -> None:
        """Set a commit status on ``sha``."""

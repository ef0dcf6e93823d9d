"""Code-hosting collaborators used to publish the review pull request."""

from .base import (
    APPROVED_LABEL,
    REVIEW_LABEL,
    STATUS_CONTEXT,
    HostingClient,
    PullRequest,
    StatusState,
)
from .github import GitHubClient
from .inprocess import InMemoryHostingClient

__all__ = [
    "APPROVED_LABEL",
    "GitHubClient",
    "HostingClient",
    "InMemoryHostingClient",
    "PullRequest",
    "REVIEW_LABEL",
    "STATUS_CONTEXT",
    "StatusState",
]

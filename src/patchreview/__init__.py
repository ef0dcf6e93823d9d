"""Public package entrypoint for the patch-review pipeline."""

from .checkpoint import CheckpointState, FetchOutcome, GitClient, RemoteOutcome
from .config import PipelineConfig, PullRequestContext, load_config
from .errors import (
    CheckpointError,
    ConfigurationError,
    ErrorCode,
    FetchError,
    HostingError,
    PatchError,
    PatchReviewError,
)
from .fetch import ArchiveFetcher, Fetcher, GitFetcher, LocalFetcher, create_fetcher
from .locator import Credentials, SourceLocator
from .observability import StructuredLogger
from .patch import Manager, Patch, PatchApplication
from .pipeline import PatchReviewPipeline
from .report import PipelineReport

__all__ = [
    "ArchiveFetcher",
    "CheckpointError",
    "CheckpointState",
    "ConfigurationError",
    "Credentials",
    "ErrorCode",
    "FetchError",
    "FetchOutcome",
    "Fetcher",
    "GitClient",
    "GitFetcher",
    "HostingError",
    "LocalFetcher",
    "Manager",
    "Patch",
    "PatchApplication",
    "PatchError",
    "PatchReviewError",
    "PatchReviewPipeline",
    "PipelineConfig",
    "PipelineReport",
    "PullRequestContext",
    "RemoteOutcome",
    "SourceLocator",
    "StructuredLogger",
    "create_fetcher",
    "load_config",
]

"""Git-backed checkpoint client for the patch-review pipeline.

The client owns the working directory's repository metadata. Checkpoints are
lightweight tags named ``<prefix>-<name>`` so several runs can share one
remote without colliding. The repository is created lazily: the first
operation moves the client from ``UNINITIALIZED`` to ``INITIALIZED`` and every
later operation skips that step.

Checkpoint commits live on a local branch named after the prefix. A ref that
resolves to a local branch is refused, so a downstream base branch can never
silently resolve to the checkpoint history.

Remote registration and the fetch that precedes a checkout are best-effort;
their outcome is returned (and logged) instead of raised, because both fail
routinely on a first run or when no remote is configured.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import StrEnum
from pathlib import Path

from patchreview.errors import CheckpointError
from patchreview.locator import SourceLocator
from patchreview.observability import StructuredLogger
from patchreview.process import CommandResult, run_command

BOT_NAME = "patch-review[bot]"
BOT_EMAIL = "patch-review[bot]"
DEFAULT_REMOTE_NAME = "patch-review"
FETCH_DEPTH = 1


class CheckpointState(StrEnum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"


class RemoteOutcome(StrEnum):
    REGISTERED = "registered"
    EXISTING = "existing"
    FAILED = "failed"
    SKIPPED = "skipped"


class FetchOutcome(StrEnum):
    FETCHED = "fetched"
    FAILED = "failed"
    SKIPPED = "skipped"


class GitClient:
    def __init__(
        self,
        working_directory: str | Path,
        prefix: str,
        remote: SourceLocator | None = None,
        *,
        remote_name: str = DEFAULT_REMOTE_NAME,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.working_directory = Path(working_directory)
        self.prefix = prefix
        self.remote = remote
        self.remote_name = remote_name
        self.logger = logger or StructuredLogger()
        self.state = CheckpointState.UNINITIALIZED
        self.remote_outcome: RemoteOutcome | None = None

    def prefixed(self, name: str) -> str:
        return f"{self.prefix}-{name}"

    def mark(self, name: str) -> str:
        """Commit the whole working tree and tag it; return the commit SHA."""
        self._ensure_initialized()
        tag = self.prefixed(name)
        self._git(["add", "--force", "."], operation="mark")
        self._git(["commit", "--allow-empty", "--quiet", f"--message={tag}"], operation="mark")
        # Re-marking a name re-points its tag at the new commit.
        self._git(["tag", "--force", tag], operation="mark")
        commit = self._git(["rev-parse", "HEAD"], operation="mark").stdout
        self.logger.log(operation="mark", checkpoint=name, message=f"tagged {tag} at {commit}")
        return commit

    def checkout(self, name: str) -> FetchOutcome:
        return self.checkout_ref(self.prefixed(name))

    def checkout_ref(self, ref: str) -> FetchOutcome:
        """Best-effort fetch of ``ref``, then a forced checkout discarding local changes."""
        self._ensure_initialized()
        outcome = self._fetch(ref)
        target = self._resolve(ref, outcome, operation="checkout")
        self._git(["checkout", "--force", "--quiet", target], operation="checkout")
        self.logger.log(operation="checkout", message=f"checked out {target}")
        return outcome

    def overlay_ref(self, ref: str) -> FetchOutcome:
        """Write the tree of ``ref`` over the working tree without moving HEAD.

        Files tracked by ``ref`` replace their current versions; files that
        only exist in the current checkout are kept.
        """
        self._ensure_initialized()
        outcome = self._fetch(ref)
        target = self._resolve(ref, outcome, operation="overlay")
        self._git(["checkout", target, "--", "."], operation="overlay")
        self.logger.log(operation="overlay", message=f"overlaid {target}")
        return outcome

    def push(self, name: str) -> None:
        self._ensure_initialized()
        tag = self.prefixed(name)
        if self.remote is None:
            raise CheckpointError(
                "Cannot push without a remote.",
                hint="Configure the downstream repository URI.",
                context={"operation": "push", "ref": tag},
            )
        self._git(
            ["push", "--force", self.remote_name, f"refs/tags/{tag}:refs/heads/{tag}"],
            operation="push",
        )
        self.logger.log(operation="push", checkpoint=name, message=f"pushed {tag} as a branch")

    def diff(self, from_name: str, to_name: str, output: str | Path) -> Path:
        """Write the patch-format diff between two checkpoints to ``output``."""
        self._ensure_initialized()
        output_path = Path(output).absolute()
        output_path.parent.mkdir(parents=True, exist_ok=True)
        refs = f"{self.prefixed(from_name)}..{self.prefixed(to_name)}"
        self._git(["diff", f"--output={output_path}", refs], operation="diff")
        self.logger.log(operation="diff", message=f"wrote {refs} to {output_path}")
        return output_path

    def revparse(self, name: str) -> str:
        self._ensure_initialized()
        return self._git(
            ["rev-parse", "--verify", f"{self.prefixed(name)}^{{commit}}"],
            operation="revparse",
        ).stdout

    def _ensure_initialized(self) -> None:
        if self.state is CheckpointState.INITIALIZED:
            return
        try:
            self.working_directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CheckpointError(
                "Unable to create the working directory.",
                context={"operation": "init", "path": str(self.working_directory), "error": str(exc)},
            ) from exc
        self._git(["init", "--quiet", f"--initial-branch={self.prefix}"], operation="init")
        self._git(["config", "user.name", BOT_NAME], operation="init")
        self._git(["config", "user.email", BOT_EMAIL], operation="init")
        self._git(["config", "commit.gpgsign", "false"], operation="init")
        self._git(["config", "tag.gpgsign", "false"], operation="init")
        self.remote_outcome = self._register_remote()
        self.state = CheckpointState.INITIALIZED

    def _register_remote(self) -> RemoteOutcome:
        if self.remote is None:
            return RemoteOutcome.SKIPPED
        result = self._run(["remote", "add", self.remote_name, self.remote.uri])
        if result.ok:
            self.logger.log(
                operation="init",
                message=f"registered remote {self.remote_name} -> {self.remote.redacted}",
            )
            return RemoteOutcome.REGISTERED
        if self._run(["remote", "get-url", self.remote_name]).ok:
            self.logger.log(operation="init", message=f"remote {self.remote_name} already exists")
            return RemoteOutcome.EXISTING
        self.logger.warning(
            operation="init",
            message=f"could not register remote {self.remote_name}",
            extra={"stderr": self._redact(result.stderr)},
        )
        return RemoteOutcome.FAILED

    def _fetch(self, ref: str) -> FetchOutcome:
        if self.remote is None:
            return FetchOutcome.SKIPPED
        result = self._run(
            [
                "fetch",
                "--quiet",
                f"--depth={FETCH_DEPTH}",
                self.remote_name,
                f"+{ref}:{self._tracking_ref(ref)}",
            ]
        )
        if result.ok:
            return FetchOutcome.FETCHED
        self.logger.warning(
            operation="fetch",
            message=f"could not fetch {ref} from {self.remote_name}",
            extra={"stderr": self._redact(result.stderr)},
        )
        return FetchOutcome.FAILED

    def _resolve(self, ref: str, outcome: FetchOutcome, *, operation: str) -> str:
        if self._ref_exists(f"refs/tags/{ref}"):
            return f"refs/tags/{ref}"
        if outcome is FetchOutcome.FETCHED:
            return self._tracking_ref(ref)
        # Local branches only ever hold this client's own checkpoint commits.
        if self._ref_exists(f"refs/heads/{ref}"):
            raise CheckpointError(
                "Ref resolves to the checkpoint history, not to the remote.",
                hint="Check that the downstream remote is reachable and has this branch.",
                context={"operation": operation, "ref": ref, "remote": self.remote_name},
            )
        return ref

    def _tracking_ref(self, ref: str) -> str:
        return f"refs/remotes/{self.remote_name}/{ref}"

    def _ref_exists(self, ref: str) -> bool:
        return self._run(["rev-parse", "--verify", "--quiet", ref]).ok

    def _git(self, argv: Sequence[str], *, operation: str) -> CommandResult:
        result = self._run(argv)
        if not result.ok:
            raise CheckpointError(
                "Git command failed.",
                hint="Inspect the working directory repository and git installation.",
                context={
                    "operation": operation,
                    "cwd": str(self.working_directory),
                    "argv": self._redact(result.command),
                    "stderr": self._redact(result.stderr),
                },
            )
        return result

    def _run(self, argv: Sequence[str]) -> CommandResult:
        return run_command(["git", *argv], cwd=self.working_directory)

    def _redact(self, text: str) -> str:
        return self.remote.redact(text) if self.remote is not None else text


__all__ = ["CheckpointState", "FetchOutcome", "GitClient", "RemoteOutcome"]

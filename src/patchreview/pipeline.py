"""Four-checkpoint patch-review pipeline.

The pipeline records, in order:

``baseline``
    the upstream sources exactly as fetched;
``head``
    ``baseline`` with the local patch set applied;
``base``
    ``baseline`` overlaid with the downstream base branch, then patched;
``diffhead``
    ``base`` plus the ``base..head`` diff.

Pushing ``base`` and ``diffhead`` and opening a pull request between them
yields a change that applies to the current downstream base however far
upstream and downstream have drifted apart.

Every step runs to completion before the next one starts. Errors propagate
unchanged and leave already-created checkpoints in place for inspection.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from patchreview.checkpoint import GitClient
from patchreview.config import PipelineConfig
from patchreview.errors import FetchError
from patchreview.fetch import Fetcher, create_fetcher
from patchreview.hosting import (
    APPROVED_LABEL,
    REVIEW_LABEL,
    STATUS_CONTEXT,
    HostingClient,
    StatusState,
)
from patchreview.locator import SourceLocator
from patchreview.observability import StructuredLogger
from patchreview.patch import Manager, PatchApplication, expand_patterns
from patchreview.report import PipelineReport

DIFF_STRIP = 1


def build_patch_set(config: PipelineConfig) -> Manager:
    manager = Manager()
    if config.patches:
        manager.add_from_glob(
            config.patches,
            root=config.downstream_directory,
            follow_symlinks=config.follow_symlinks,
            strip=config.strip,
        )
    return manager


class PatchReviewPipeline:
    def __init__(
        self,
        config: PipelineConfig,
        *,
        patches: Manager | None = None,
        hosting: HostingClient | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.config = config
        self.logger = logger or StructuredLogger()
        self.hosting = hosting
        # Locators and the fetcher are resolved up front so configuration
        # errors surface before any process runs.
        self.upstream = SourceLocator.from_credentials(
            config.upstream_uri, config.upstream_credentials
        )
        self.fetcher: Fetcher = create_fetcher(self.upstream, tmp_dir=config.tmp_dir)
        downstream = (
            SourceLocator.from_credentials(config.downstream_uri, config.downstream_credentials)
            if config.downstream_uri
            else None
        )
        self.client = GitClient(
            config.working_directory,
            config.prefix,
            downstream,
            logger=self.logger,
        )
        self.patches = patches if patches is not None else build_patch_set(config)
        self.report = PipelineReport(prefix=config.prefix)

    def run(self) -> PipelineReport:
        self._set_status("pending", "Building the patch review.")
        self.capture_baseline()
        self.capture_head()
        self.capture_base()
        self.capture_diffhead()
        self.publish()
        return self.report

    def capture_baseline(self) -> str:
        with self.logger.group("fetch upstream", checkpoint="baseline"):
            self.logger.log(
                operation="fetch",
                checkpoint="baseline",
                message=f"fetching {self.upstream.redacted} into {self.config.working_directory}",
            )
            self.fetcher.fetch(self.config.working_directory)
            self._copy_auxiliary_files()
            commit = self.client.mark("baseline")
        self.report.remote_outcome = (
            self.client.remote_outcome.value if self.client.remote_outcome is not None else None
        )
        self.report.checkpoints["baseline"] = commit
        return commit

    def capture_head(self) -> str:
        with self.logger.group("apply patches", checkpoint="head"):
            self._apply_patches("head")
            commit = self.client.mark("head")
        self.report.checkpoints["head"] = commit
        return commit

    def capture_base(self) -> str:
        with self.logger.group("apply patches to downstream base", checkpoint="base"):
            self.report.fetch_outcomes["baseline"] = self.client.checkout("baseline").value
            self.report.fetch_outcomes[self.config.base_branch] = self.client.overlay_ref(
                self.config.base_branch
            ).value
            self._apply_patches("base")
            commit = self.client.mark("base")
        self.report.checkpoints["base"] = commit
        return commit

    def capture_diffhead(self) -> str:
        with self.logger.group("apply base..head diff", checkpoint="diffhead"):
            diff_path = self.client.diff("base", "head", self.config.diff_path)
            self.report.diff_path = diff_path
            if diff_path.exists() and diff_path.stat().st_size:
                manager = Manager()
                manager.add_patch(diff_path, strip=DIFF_STRIP)
                self._record_drift("diffhead", manager.patch(self.config.working_directory))
                self.report.diff_applied = True
            else:
                self.logger.log(
                    operation="patch",
                    checkpoint="diffhead",
                    message="base..head diff is empty; nothing to apply",
                )
            commit = self.client.mark("diffhead")
        self.report.checkpoints["diffhead"] = commit
        return commit

    def publish(self) -> None:
        if not self.config.push:
            self.logger.log(operation="publish", message="push disabled; skipping publication")
            return
        with self.logger.group("publish"):
            for name in ("base", "diffhead"):
                self.client.push(name)
                self.report.pushed.append(self.client.prefixed(name))
            if self.hosting is None:
                return
            pull_request = self.hosting.ensure_pull_request(
                base=self.client.prefixed("base"),
                head=self.client.prefixed("diffhead"),
                title=self._title(),
                body=self._body(),
            )
            self.report.pull_request_number = pull_request.number
            self.report.pull_request_url = pull_request.url
            self.logger.log(
                operation="publish",
                message=f"pull request #{pull_request.number}: {pull_request.url}",
            )
            self.hosting.add_label(pull_request.number, REVIEW_LABEL)
            trigger = self.config.pull_request
            if trigger is not None and trigger.approved:
                self.hosting.add_label(pull_request.number, APPROVED_LABEL)
            else:
                self.hosting.remove_label(pull_request.number, APPROVED_LABEL)
            self._set_status("success", "Patch review is ready.", target_url=pull_request.url)

    def _apply_patches(self, checkpoint: str) -> None:
        self.logger.log(
            operation="patch",
            checkpoint=checkpoint,
            message=f"applying {len(self.patches)} patch(es)",
        )
        self._record_drift(checkpoint, self.patches.patch(self.config.working_directory))

    def _record_drift(self, checkpoint: str, application: PatchApplication) -> None:
        for line in application.drift:
            self.logger.warning(operation="patch", checkpoint=checkpoint, message=line)
            self.report.drift.append(f"{checkpoint}: {line}")

    def _copy_auxiliary_files(self) -> None:
        if not self.config.auxiliary_files:
            return
        root = self.config.downstream_directory
        for match in expand_patterns(self.config.auxiliary_files, root=root):
            source = Path(match)
            try:
                relative = source.relative_to(root)
            except ValueError:
                relative = Path(source.name)
            target = self.config.working_directory / relative
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, target)
            except OSError as exc:
                raise FetchError(
                    "Copying an auxiliary file failed.",
                    context={
                        "operation": "copy_auxiliary",
                        "source": str(source),
                        "destination": str(target),
                        "error": str(exc),
                    },
                ) from exc
            self.logger.log(operation="fetch", checkpoint="baseline", message=f"copied {relative}")

    def _set_status(
        self,
        state: StatusState,
        description: str,
        *,
        target_url: str | None = None,
    ) -> None:
        trigger = self.config.pull_request
        if self.hosting is None or trigger is None or not trigger.head_sha:
            return
        self.hosting.set_status(
            trigger.head_sha,
            state=state,
            context=STATUS_CONTEXT,
            description=description,
            target_url=target_url,
        )

    def _title(self) -> str:
        trigger = self.config.pull_request
        if trigger is None:
            return f"Patch review ({self.config.prefix})"
        return f"Patch review for #{trigger.number}"

    def _body(self) -> str:
        lines = [
            f"Patch set rebased onto `{self.config.base_branch}`.",
            "",
            "| Checkpoint | Commit |",
            "|------------|--------|",
        ]
        for name, commit in self.report.checkpoints.items():
            lines.append(f"| `{self.client.prefixed(name)}` | {commit} |")
        if self.report.drift:
            lines.extend(["", "Hunks applied with fuzz or offset:", ""])
            lines.extend(f"- {line}" for line in self.report.drift)
        return "\n".join(lines)


__all__ = ["PatchReviewPipeline", "build_patch_set"]

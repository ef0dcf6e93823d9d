"""Command-line entry point for running the patch-review pipeline in CI."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path

from patchreview.config import PipelineConfig, load_config
from patchreview.errors import PatchReviewError
from patchreview.hosting import GitHubClient, HostingClient
from patchreview.observability import StructuredLogger
from patchreview.pipeline import PatchReviewPipeline


def build_hosting(config: PipelineConfig) -> HostingClient | None:
    if not config.api_token or not config.repository:
        return None
    return GitHubClient(repository=config.repository, token=config.api_token, api_url=config.api_url)


def cmd_run(args: argparse.Namespace, environ: Mapping[str, str]) -> int:
    logger = StructuredLogger(stream=sys.stderr)
    try:
        config = load_config(environ)
        pipeline = PatchReviewPipeline(config, hosting=build_hosting(config), logger=logger)
        report = pipeline.run()
    except PatchReviewError as exc:
        print(exc.to_workflow_command(), file=sys.stderr)
        return 1
    finally:
        if args.log is not None:
            logger.to_json_lines(args.log)

    if args.report is not None:
        if args.report_format == "cbor":
            report.to_cbor(args.report)
        else:
            report.to_json(args.report)
    else:
        sys.stdout.write(report.to_json())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="patch-review",
        description="Turn a patch set on vendored upstream sources into a mergeable pull request.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run_p = sub.add_parser("run", help="Run the checkpoint pipeline using action inputs")
    run_p.add_argument("--report", type=Path, default=None, help="Write the run report here")
    run_p.add_argument(
        "--report-format",
        choices=("json", "cbor"),
        default="json",
        help="Encoding of the run report",
    )
    run_p.add_argument("--log", type=Path, default=None, help="Write JSON-lines logs here")
    return parser


def main(argv: Sequence[str] | None = None, environ: Mapping[str, str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "run":
        return cmd_run(args, os.environ if environ is None else environ)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())

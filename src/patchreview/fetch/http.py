"""HTTP(S) archive download with single-file fallback."""

from __future__ import annotations

import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from patchreview.errors import FetchError
from patchreview.fetch.base import ensure_parents_exist
from patchreview.locator import SourceLocator
from patchreview.process import run_command

DEFAULT_OUTPUT_NAME = "output"
STRIP_COMPONENTS = 1


@dataclass(frozen=True, slots=True)
class ArchiveFetcher:
    locator: SourceLocator
    tmp_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))

    @property
    def output_name(self) -> str:
        return self.locator.basename or DEFAULT_OUTPUT_NAME

    @property
    def download_path(self) -> Path:
        return self.tmp_dir / self.output_name

    def fetch(self, destination: str | Path) -> Path:
        """Download and extract into ``destination``.

        Returns ``destination`` when the artifact unpacks as an archive, or the
        path of the artifact moved into ``destination`` when it does not.
        """
        destination = Path(destination)
        ensure_parents_exist(destination, operation="fetch_http")
        destination.mkdir(parents=True, exist_ok=True)

        download_path = self.download()
        if self.extract(download_path, destination):
            return destination

        output_path = destination / self.output_name
        if output_path != download_path:
            try:
                shutil.move(str(download_path), str(destination))
            except (OSError, shutil.Error) as exc:
                raise FetchError(
                    "Moving the downloaded artifact failed.",
                    hint="Check permissions and that the destination does not already hold it.",
                    context={
                        "operation": "fetch_http",
                        "source": str(download_path),
                        "destination": str(destination),
                        "error": str(exc),
                    },
                ) from exc
        return output_path

    def download(self) -> Path:
        self.tmp_dir.mkdir(parents=True, exist_ok=True)
        download_path = self.download_path
        result = run_command(
            [
                "curl",
                "--location",
                "--fail",
                "--output",
                str(download_path),
                self.locator.uri,
            ]
        )
        if not result.ok:
            raise FetchError(
                "Download failed.",
                hint="Check the upstream URI, credentials, and network access.",
                context={
                    "operation": "fetch_http",
                    "url": self.locator.redacted,
                    "returncode": str(result.returncode),
                    "stderr": self.locator.redact(result.stderr),
                },
            )
        return download_path

    def extract(self, archive: Path, destination: Path) -> bool:
        """Unpack ``archive`` into ``destination``; ``False`` when it is not an archive."""
        result = run_command(
            [
                "tar",
                "--extract",
                f"--file={archive}",
                f"--strip-components={STRIP_COMPONENTS}",
                "-C",
                str(destination),
            ]
        )
        return result.ok

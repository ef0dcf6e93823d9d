"""Typed pipeline error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import ClassVar


class ErrorCode(StrEnum):
    """Stable error identifiers, one per pipeline component."""

    CONFIGURATION = "E_CONFIGURATION"
    FETCH = "E_FETCH"
    PATCH = "E_PATCH"
    CHECKPOINT = "E_CHECKPOINT"
    HOSTING = "E_HOSTING"


class PatchReviewError(Exception):
    """Base error carrying a component code, an optional hint, and context.

    Context values are shown verbatim, so callers redact credentials before
    building them.
    """

    default_code: ClassVar[ErrorCode]

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = (code or self.default_code).value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [self.message]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        for key, value in self.context.items():
            if value:
                parts.append(f"  {key}: {value}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload

    def to_workflow_command(self) -> str:
        """Render as a GitHub Actions ``::error`` annotation.

        The annotation must fit on one line, so newlines in tool output are
        percent-encoded the way the runner expects.
        """
        return f"::error title={_escape(self.code)}::{_escape(str(self))}"


class ConfigurationError(PatchReviewError):
    default_code = ErrorCode.CONFIGURATION


class FetchError(PatchReviewError):
    default_code = ErrorCode.FETCH


class PatchError(PatchReviewError):
    default_code = ErrorCode.PATCH


class CheckpointError(PatchReviewError):
    default_code = ErrorCode.CHECKPOINT


class HostingError(PatchReviewError):
    default_code = ErrorCode.HOSTING


def _escape(text: str) -> str:
    return text.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


__all__ = [
    "CheckpointError",
    "ConfigurationError",
    "ErrorCode",
    "FetchError",
    "HostingError",
    "PatchError",
    "PatchReviewError",
]

"""
CommandResult model — the outcome of one external command.

Executors return these instead of raising: a non-zero exit is data,
not an exception. Services decide which failures are fatal.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class CommandResult(BaseModel):
    """Result of running a command through an executor."""

    argv: list[str]
    returncode: int = 0

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        """Whether the command exited with status 0."""
        return self.returncode == 0

    @property
    def failed(self) -> bool:
        return not self.ok

    @property
    def error(self) -> str:
        """Best human-readable explanation of a failure."""
        if self.ok:
            return ""
        return self.stderr.strip() or f"exited with status {self.returncode}"

    @classmethod
    def success(cls, argv: list[str], stdout: str = "", **kwargs: Any) -> CommandResult:
        """Create a successful result."""
        return cls(argv=list(argv), returncode=0, stdout=stdout, **kwargs)

    @classmethod
    def failure(
        cls,
        argv: list[str],
        stderr: str = "",
        returncode: int = 1,
        **kwargs: Any,
    ) -> CommandResult:
        """Create a failed result."""
        return cls(argv=list(argv), returncode=returncode, stderr=stderr, **kwargs)

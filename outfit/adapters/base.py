"""
Executor base — the contract between the pipeline and the target host.

Every stage that touches the target goes through an Executor, so the
same pipeline runs against a remote host over ssh or against the
local machine. The pipeline never calls subprocess directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from pathlib import Path

from outfit.core.models.command import CommandResult

# Receives raw output chunks as the target produces them
OutputSink = Callable[[bytes], None]


class Executor(ABC):
    """Abstract base class for target executors.

    Executors run commands and return results. They NEVER raise for a
    failing command: a non-zero exit is captured in the CommandResult
    (or the returned status) and the caller decides what is fatal.

    To add a transport:
        1. Subclass Executor
        2. Implement name, run, run_interactive, copy_files
        3. Select it in ``outfit.adapters.registry.build_executor``
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The executor identifier (e.g., 'local', 'ssh')."""

    @abstractmethod
    def run(self, argv: Sequence[str]) -> CommandResult:
        """Run a command on the target and capture its output."""

    @abstractmethod
    def run_interactive(self, argv: Sequence[str], sink: OutputSink) -> int:
        """Run a command attached to a terminal on the target.

        Combined stdout/stderr is handed to ``sink`` chunk by chunk as it
        arrives. Returns the exit status.
        """

    @abstractmethod
    def copy_files(self, paths: Sequence[Path], dest_dir: str) -> CommandResult:
        """Copy local files into a directory on the target."""

    def describe(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} target={self.describe()!r}>"

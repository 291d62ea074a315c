"""
Mock executor — test double for every executor operation.

Records every call and answers from a script of canned results, so
pipeline stages can be exercised without ssh, scp or a real target.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from outfit.adapters.base import Executor, OutputSink
from outfit.core.models.command import CommandResult


@dataclass
class MockCall:
    """One recorded executor call."""

    method: str
    argv: list[str]
    paths: list[Path] | None = None
    dest_dir: str | None = None


class MockExecutor(Executor):
    """Executor that never touches a host.

    By default every command succeeds with empty output. Responses are
    keyed by the command name (``argv[0]``).
    """

    def __init__(self, executor_name: str = "mock"):
        self._name = executor_name
        self._responses: dict[str, CommandResult] = {}
        self._interactive_output: bytes = b""
        self._interactive_status = 0
        self._copy_result: CommandResult | None = None
        self.calls: list[MockCall] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def commands(self) -> list[list[str]]:
        """argv of every run/run_interactive call, in order."""
        return [c.argv for c in self.calls if c.method != "copy_files"]

    def set_response(self, command: str, stdout: str = "", returncode: int = 0, stderr: str = "") -> None:
        self._responses[command] = CommandResult(
            argv=[command], returncode=returncode, stdout=stdout, stderr=stderr
        )

    def set_interactive(self, output: bytes = b"", returncode: int = 0) -> None:
        self._interactive_output = output
        self._interactive_status = returncode

    def set_copy_failure(self, error: str = "Mock copy failure") -> None:
        self._copy_result = CommandResult.failure(["cp"], stderr=error)

    def reset(self) -> None:
        self.calls.clear()

    def run(self, argv: Sequence[str]) -> CommandResult:
        argv_list = list(argv)
        self.calls.append(MockCall(method="run", argv=argv_list))
        canned = self._responses.get(argv_list[0]) if argv_list else None
        if canned is None:
            return CommandResult.success(argv_list)
        return canned.model_copy(update={"argv": argv_list})

    def run_interactive(self, argv: Sequence[str], sink: OutputSink) -> int:
        self.calls.append(MockCall(method="run_interactive", argv=list(argv)))
        if self._interactive_output:
            sink(self._interactive_output)
        return self._interactive_status

    def copy_files(self, paths: Sequence[Path], dest_dir: str) -> CommandResult:
        self.calls.append(
            MockCall(method="copy_files", argv=[], paths=list(paths), dest_dir=dest_dir)
        )
        if self._copy_result is not None:
            return self._copy_result
        return CommandResult.success(["cp", *(str(p) for p in paths), dest_dir])

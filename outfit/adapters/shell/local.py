"""
Local executor — run everything on this machine.

Used in local mode. Commands are spawned directly from argument
vectors (no shell), the interactive run gets a pseudo-terminal so the
engine keeps its colored output, and "copying to the target" is a
plain filesystem copy.
"""

from __future__ import annotations

import logging
import os
import pty
import shlex
import shutil
import subprocess
import time
from collections.abc import Sequence
from pathlib import Path

from outfit.adapters.base import Executor, OutputSink
from outfit.core.models.command import CommandResult

logger = logging.getLogger(__name__)

_READ_SIZE = 4096


def run_process(argv: Sequence[str]) -> CommandResult:
    """Spawn ``argv``, wait for it, and capture stdout/stderr as text."""
    argv_list = list(argv)
    logger.debug("CMD %s", shlex.join(argv_list))
    start = time.monotonic()

    try:
        p = subprocess.run(
            argv_list,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
        )
    except OSError as e:
        return CommandResult.failure(argv_list, stderr=str(e), returncode=127)

    elapsed_ms = int((time.monotonic() - start) * 1000)
    if p.stderr:
        logger.debug("STDERR %s", p.stderr.strip())

    return CommandResult(
        argv=argv_list,
        returncode=p.returncode,
        stdout=p.stdout,
        stderr=p.stderr,
        duration_ms=elapsed_ms,
    )


class LocalExecutor(Executor):
    """Execute on the invoking machine."""

    @property
    def name(self) -> str:
        return "local"

    def describe(self) -> str:
        return "localhost"

    def run(self, argv: Sequence[str]) -> CommandResult:
        return run_process(argv)

    def run_interactive(self, argv: Sequence[str], sink: OutputSink) -> int:
        argv_list = list(argv)
        logger.debug("CMD (pty) %s", shlex.join(argv_list))

        master, slave = pty.openpty()
        try:
            proc = subprocess.Popen(argv_list, stdout=slave, stderr=slave)
        except OSError as e:
            os.close(master)
            os.close(slave)
            sink(f"{e}\n".encode())
            return 127
        os.close(slave)

        try:
            while True:
                try:
                    chunk = os.read(master, _READ_SIZE)
                except OSError:
                    # EIO: every writer on the slave side has gone away
                    break
                if not chunk:
                    break
                sink(chunk)
        finally:
            os.close(master)

        return proc.wait()

    def copy_files(self, paths: Sequence[Path], dest_dir: str) -> CommandResult:
        argv = ["cp", *(str(p) for p in paths), dest_dir]
        logger.debug("COPY %s", shlex.join(argv))
        try:
            for path in paths:
                shutil.copy2(path, Path(dest_dir) / Path(path).name)
        except OSError as e:
            return CommandResult.failure(argv, stderr=str(e))
        return CommandResult.success(argv)

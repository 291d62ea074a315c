"""
Applier — ship the package to the target and run it there.

Sequence (each step fatal on failure, nothing retried):
    1. write bootstrap.sh into the work directory
    2. ``mktemp -d`` on the target
    3. copy archive, engine and bootstrap into that directory
    4. ``sh <dir>/bootstrap.sh`` on a terminal, output streamed to the sink

If the copy fails the remote directory is left behind as-is; nothing
ran there yet, and its contents help explain what went wrong.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from pathlib import Path

from outfit.adapters.base import Executor, OutputSink
from outfit.core.errors import TransportError
from outfit.core.models.invocation import InvocationConfig
from outfit.core.services.bootstrap import BOOTSTRAP_NAME, render_bootstrap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApplyResult:
    remote_dir: str
    bootstrap: Path
    returncode: int


def write_bootstrap(config: InvocationConfig, work_dir: Path, archive: Path, engine: Path) -> Path:
    path = work_dir / BOOTSTRAP_NAME
    path.write_text(render_bootstrap(config, archive.name, engine.name), encoding="utf-8")
    path.chmod(0o755)
    return path


def make_remote_dir(executor: Executor) -> str:
    result = executor.run(["mktemp", "-d"])
    remote_dir = result.stdout.strip()
    if result.failed or not remote_dir:
        raise TransportError(
            f"could not create a temporary directory on {executor.describe()}: "
            f"{result.error or 'empty output'}"
        )
    return remote_dir


def apply_recipes(
    executor: Executor,
    config: InvocationConfig,
    work_dir: Path,
    archive: Path,
    engine: Path,
    sink: OutputSink,
) -> ApplyResult:
    """Transfer everything and run the bootstrap on the target.

    Raises:
        TransportError: temp dir creation, copy, or the run itself failed.
            The engine's own non-zero exit is reported the same way.
    """
    bootstrap = write_bootstrap(config, work_dir, archive, engine)
    remote_dir = make_remote_dir(executor)
    logger.info("Staging on %s:%s", executor.describe(), remote_dir)

    copied = executor.copy_files([archive, engine, bootstrap], remote_dir)
    if copied.failed:
        raise TransportError(f"could not copy recipes: {copied.error}")

    returncode = executor.run_interactive(
        ["sh", posixpath.join(remote_dir, BOOTSTRAP_NAME)], sink
    )
    if returncode != 0:
        raise TransportError(f"could not apply recipes (exit status {returncode})")

    return ApplyResult(remote_dir=remote_dir, bootstrap=bootstrap, returncode=returncode)

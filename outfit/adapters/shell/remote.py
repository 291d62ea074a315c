"""
SSH executor — run on a remote host through the system ssh/scp clients.

Argument vectors are quoted with ``shlex.join`` only at the point where
they cross into the remote login shell. Transport details (keys,
ports, jump hosts) come from the user's ssh config, not from us.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Sequence
from pathlib import Path

from outfit.adapters.base import Executor, OutputSink
from outfit.adapters.shell.local import run_process
from outfit.core.errors import TransportError
from outfit.core.models.command import CommandResult

logger = logging.getLogger(__name__)

AGENT_SOCKET_ENV = "SSH_AUTH_SOCK"

_READ_SIZE = 4096


class SshExecutor(Executor):
    """Execute on ``destination`` (anything ssh accepts: host, user@host, alias).

    Args:
        destination: ssh destination.
        forward_agent: Forward the local agent socket on the interactive run.
        ssh: ssh client binary.
        scp: scp client binary.
    """

    def __init__(
        self,
        destination: str,
        forward_agent: bool = False,
        ssh: str = "ssh",
        scp: str = "scp",
    ):
        self.destination = destination
        self.forward_agent = forward_agent
        self._ssh = ssh
        self._scp = scp

    @property
    def name(self) -> str:
        return "ssh"

    def describe(self) -> str:
        return self.destination

    def ssh_argv(self, argv: Sequence[str], interactive: bool = False) -> list[str]:
        """Build the local ssh invocation that runs ``argv`` remotely."""
        cmd = [self._ssh]
        if interactive:
            # -tt: force a remote pty even though our stdout is a pipe
            cmd.append("-tt")
            if self.forward_agent:
                cmd.append("-A")
        cmd.append(self.destination)
        cmd.append(shlex.join(argv))
        return cmd

    def scp_argv(self, paths: Sequence[Path], dest_dir: str) -> list[str]:
        return [self._scp, "-q", *(str(p) for p in paths), f"{self.destination}:{dest_dir}/"]

    def run(self, argv: Sequence[str]) -> CommandResult:
        result = run_process(self.ssh_argv(argv))
        logger.debug("ssh %s exited %d", self.destination, result.returncode)
        return result

    def run_interactive(self, argv: Sequence[str], sink: OutputSink) -> int:
        cmd = self.ssh_argv(argv, interactive=True)
        if self.forward_agent and not os.environ.get(AGENT_SOCKET_ENV):
            logger.warning("Agent forwarding requested but %s is not set", AGENT_SOCKET_ENV)
        logger.debug("CMD %s", shlex.join(cmd))

        try:
            proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT)
        except OSError as e:
            sink(f"{e}\n".encode())
            return 255

        if proc.stdout is None:
            proc.kill()
            proc.wait()
            raise TransportError(f"no output pipe from ssh to {self.destination}")

        fd = proc.stdout.fileno()
        try:
            while True:
                chunk = os.read(fd, _READ_SIZE)
                if not chunk:
                    break
                sink(chunk)
        finally:
            proc.stdout.close()

        return proc.wait()

    def copy_files(self, paths: Sequence[Path], dest_dir: str) -> CommandResult:
        return run_process(self.scp_argv(paths, dest_dir))

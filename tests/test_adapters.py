"""
Tests for executors (local, ssh, mock), executor selection and ignore matchers.
"""

import shutil
import subprocess
from pathlib import Path

import pytest

from outfit.adapters import (
    GitIgnoreMatcher,
    LocalExecutor,
    MockExecutor,
    NullIgnoreMatcher,
    SshExecutor,
    build_executor,
    build_ignore_matcher,
)
from outfit.adapters.shell import remote
from outfit.core.errors import TransportError
from outfit.core.models.command import CommandResult
from outfit.core.models.invocation import InvocationConfig

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")

# ── Local Executor ───────────────────────────────────────────────────


class TestLocalExecutor:
    def test_run_captures_stdout(self):
        result = LocalExecutor().run(["echo", "hello"])
        assert result.ok
        assert result.stdout == "hello\n"
        assert result.argv == ["echo", "hello"]

    def test_run_failure_is_not_raised(self):
        result = LocalExecutor().run(["sh", "-c", "echo oops >&2; exit 3"])
        assert result.failed
        assert result.returncode == 3
        assert result.error == "oops"

    def test_run_missing_binary(self):
        result = LocalExecutor().run(["definitely-not-a-command-xyz"])
        assert result.returncode == 127

    def test_run_interactive_streams_combined_output(self):
        chunks: list[bytes] = []
        code = LocalExecutor().run_interactive(
            ["sh", "-c", "echo out; echo err >&2; exit 4"], chunks.append
        )
        output = b"".join(chunks)
        assert code == 4
        assert b"out" in output
        assert b"err" in output

    def test_run_interactive_has_a_terminal(self):
        chunks: list[bytes] = []
        code = LocalExecutor().run_interactive(
            ["sh", "-c", "[ -t 1 ] && echo tty"], chunks.append
        )
        assert code == 0
        assert b"tty" in b"".join(chunks)

    def test_copy_files(self, tmp_path: Path):
        src = tmp_path / "a.txt"
        src.write_text("A")
        dest = tmp_path / "dest"
        dest.mkdir()
        result = LocalExecutor().copy_files([src], str(dest))
        assert result.ok
        assert (dest / "a.txt").read_text() == "A"

    def test_copy_files_missing_dest(self, tmp_path: Path):
        src = tmp_path / "a.txt"
        src.write_text("A")
        result = LocalExecutor().copy_files([src], str(tmp_path / "nope"))
        assert result.failed


# ── SSH Executor ─────────────────────────────────────────────────────


class TestSshExecutor:
    def test_run_quotes_for_remote_shell(self):
        ssh = SshExecutor("deploy@web1")
        argv = ssh.ssh_argv(["sh", "/tmp/dir with space/bootstrap.sh"])
        assert argv == ["ssh", "deploy@web1", "sh '/tmp/dir with space/bootstrap.sh'"]

    def test_interactive_forces_tty(self):
        argv = SshExecutor("web1").ssh_argv(["uname", "-m"], interactive=True)
        assert argv == ["ssh", "-tt", "web1", "uname -m"]

    def test_agent_forwarding_only_interactive(self):
        ssh = SshExecutor("web1", forward_agent=True)
        assert "-A" in ssh.ssh_argv(["true"], interactive=True)
        assert "-A" not in ssh.ssh_argv(["true"])

    def test_scp_argv(self):
        argv = SshExecutor("web1").scp_argv([Path("/w/a.tgz"), Path("/w/b.sh")], "/tmp/x")
        assert argv == ["scp", "-q", "/w/a.tgz", "/w/b.sh", "web1:/tmp/x/"]

    def test_run_goes_through_ssh(self, monkeypatch):
        seen = []

        def fake_run_process(argv):
            seen.append(argv)
            return CommandResult.success(argv, stdout="aarch64\n")

        monkeypatch.setattr(remote, "run_process", fake_run_process)
        result = SshExecutor("web1").run(["uname", "-m"])
        assert result.stdout == "aarch64\n"
        assert seen == [["ssh", "web1", "uname -m"]]

    def test_copy_goes_through_scp(self, monkeypatch):
        seen = []
        monkeypatch.setattr(
            remote, "run_process", lambda argv: seen.append(argv) or CommandResult.success(argv)
        )
        SshExecutor("web1").copy_files([Path("/w/a")], "/tmp/x")
        assert seen[0][0] == "scp"

    def test_run_interactive_streams(self, tmp_path: Path):
        # A fake ssh client: ignore the ssh flags, run the remote command locally
        fake_ssh = tmp_path / "fake-ssh"
        fake_ssh.write_text('#!/bin/sh\nfor last; do :; done\nexec sh -c "$last"\n')
        fake_ssh.chmod(0o755)

        chunks: list[bytes] = []
        ssh = SshExecutor("web1", ssh=str(fake_ssh))
        code = ssh.run_interactive(["sh", "-c", "echo one; echo two >&2; exit 2"], chunks.append)
        output = b"".join(chunks)
        assert code == 2
        assert b"one" in output and b"two" in output

    def test_run_interactive_without_pipe(self, monkeypatch):
        class NoPipe:
            stdout = None
            killed = False

            def kill(self):
                self.killed = True

            def wait(self):
                return -9

        proc = NoPipe()
        monkeypatch.setattr(remote.subprocess, "Popen", lambda *a, **kw: proc)

        with pytest.raises(TransportError, match="no output pipe from ssh to web1"):
            SshExecutor("web1").run_interactive(["true"], lambda _: None)
        assert proc.killed

    def test_describe(self):
        assert SshExecutor("deploy@web1").describe() == "deploy@web1"


# ── Executor selection ───────────────────────────────────────────────


class TestBuildExecutor:
    def test_local(self):
        assert isinstance(build_executor(InvocationConfig(local=True)), LocalExecutor)

    def test_remote(self):
        executor = build_executor(InvocationConfig(destination="web1", forward_agent=True))
        assert isinstance(executor, SshExecutor)
        assert executor.destination == "web1"
        assert executor.forward_agent


class TestBuildIgnoreMatcher:
    @requires_git
    def test_git_when_installed(self, tmp_path: Path):
        assert isinstance(build_ignore_matcher(tmp_path), GitIgnoreMatcher)

    def test_nothing_ignored_without_git(self, tmp_path: Path):
        matcher = build_ignore_matcher(tmp_path, git="definitely-not-git-xyz")
        assert isinstance(matcher, NullIgnoreMatcher)


# ── Mock Executor ────────────────────────────────────────────────────


class TestMockExecutor:
    def test_default_success(self):
        mock = MockExecutor()
        assert mock.run(["anything"]).ok
        assert mock.call_count == 1

    def test_scripted_response(self):
        mock = MockExecutor()
        mock.set_response("uname", stdout="armv7l\n")
        result = mock.run(["uname", "-m"])
        assert result.stdout == "armv7l\n"
        assert result.argv == ["uname", "-m"]

    def test_interactive(self):
        mock = MockExecutor()
        mock.set_interactive(b"hi\n", returncode=5)
        chunks = []
        assert mock.run_interactive(["sh", "x"], chunks.append) == 5
        assert chunks == [b"hi\n"]

    def test_copy_failure(self):
        mock = MockExecutor()
        mock.set_copy_failure("disk full")
        result = mock.copy_files([Path("a")], "/tmp/x")
        assert result.failed
        assert mock.calls[0].dest_dir == "/tmp/x"

    def test_commands_and_reset(self):
        mock = MockExecutor()
        mock.run(["a"])
        mock.copy_files([Path("f")], "/d")
        mock.run_interactive(["b"], lambda _: None)
        assert mock.commands() == [["a"], ["b"]]
        mock.reset()
        assert mock.call_count == 0


# ── Ignore matchers ──────────────────────────────────────────────────


class TestNullIgnoreMatcher:
    def test_ignores_nothing(self, tmp_path: Path):
        paths = [tmp_path / "a", tmp_path / "b"]
        assert NullIgnoreMatcher().ignored(paths) == set()


@requires_git
class TestGitIgnoreMatcher:
    def _repo(self, tmp_path: Path) -> Path:
        root = tmp_path / "repo"
        root.mkdir()
        subprocess.run(["git", "init", "-q"], cwd=root, check=True)
        (root / ".gitignore").write_text("*.log\nbuild/\n")
        return root

    def test_matches_gitignore(self, tmp_path: Path):
        root = self._repo(tmp_path)
        (root / "build").mkdir()
        files = [root / "main.rb", root / "debug.log", root / "build" / "out.bin"]
        for f in files:
            f.write_text("x")
        matcher = GitIgnoreMatcher(root)
        assert matcher.ignored(files) == {root / "debug.log", root / "build" / "out.bin"}
        assert matcher.is_ignored(root / "debug.log")
        assert not matcher.is_ignored(root / "main.rb")

    def test_outside_repo_ignores_nothing(self, tmp_path: Path):
        plain = tmp_path / "plain"
        plain.mkdir()
        (plain / "x.log").write_text("x")
        assert GitIgnoreMatcher(plain).ignored([plain / "x.log"]) == set()

    def test_missing_git_ignores_nothing(self, tmp_path: Path):
        matcher = GitIgnoreMatcher(tmp_path, git="definitely-not-git-xyz")
        assert matcher.ignored([tmp_path / "a.log"]) == set()

    def test_empty_input(self, tmp_path: Path):
        assert GitIgnoreMatcher(tmp_path).ignored([]) == set()

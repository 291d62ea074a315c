"""
Ignore matchers — decide which recipe-tree paths never get shipped.

The packager asks an IgnoreMatcher instead of parsing ignore files
itself. GitIgnoreMatcher defers to ``git check-ignore`` so the rules
are exactly git's (nested .gitignore, info/exclude, global excludes).
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)


class IgnoreMatcher(ABC):
    """Answers "is this path ignored?" for paths under a root."""

    @abstractmethod
    def is_ignored(self, path: Path) -> bool:
        """Whether a single path is ignored."""

    def ignored(self, paths: Iterable[Path]) -> set[Path]:
        """The subset of ``paths`` that is ignored.

        Subclasses may override this with a batched lookup.
        """
        return {p for p in paths if self.is_ignored(p)}


class NullIgnoreMatcher(IgnoreMatcher):
    """Ignores nothing."""

    def is_ignored(self, path: Path) -> bool:
        return False


class GitIgnoreMatcher(IgnoreMatcher):
    """Ignore rules from git.

    Outside a git work tree, or without git installed, nothing is
    ignored. Tracked files are never reported as ignored, matching git.
    """

    def __init__(self, root: Path, git: str = "git", timeout: int = 60):
        self.root = Path(root)
        self._git = git
        self._timeout = timeout

    def is_available(self) -> bool:
        return shutil.which(self._git) is not None

    def is_ignored(self, path: Path) -> bool:
        return path in self.ignored([path])

    def ignored(self, paths: Iterable[Path]) -> set[Path]:
        candidates = list(paths)
        if not candidates:
            return set()

        by_rel = {os.path.relpath(p, self.root): p for p in candidates}
        try:
            result = subprocess.run(
                [self._git, "check-ignore", "--stdin", "-z"],
                cwd=self.root,
                input="\0".join(by_rel) + "\0",
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("git check-ignore unavailable, not filtering: %s", e)
            return set()

        # 0 = some ignored, 1 = none ignored, 128 = not a repo / fatal
        if result.returncode not in (0, 1):
            logger.debug("git check-ignore: %s", result.stderr.strip())
            return set()

        hits = {entry for entry in result.stdout.split("\0") if entry}
        return {by_rel[rel] for rel in hits if rel in by_rel}

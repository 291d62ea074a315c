"""
Executor selection — one place that maps an invocation to a transport.
"""

from __future__ import annotations

import logging
from pathlib import Path

from outfit.adapters.base import Executor
from outfit.adapters.shell.local import LocalExecutor
from outfit.adapters.shell.remote import SshExecutor
from outfit.adapters.vcs.git import GitIgnoreMatcher, IgnoreMatcher, NullIgnoreMatcher
from outfit.core.models.invocation import InvocationConfig

logger = logging.getLogger(__name__)


def build_executor(config: InvocationConfig) -> Executor:
    """Local mode gets a LocalExecutor, everything else goes over ssh."""
    if config.local:
        if config.forward_agent:
            logger.info("Agent forwarding has no effect in local mode")
        return LocalExecutor()
    return SshExecutor(config.destination, forward_agent=config.forward_agent)


def build_ignore_matcher(recipe_root: Path, git: str = "git") -> IgnoreMatcher:
    """git's ignore rules, or nothing ignored when git is not installed."""
    matcher = GitIgnoreMatcher(recipe_root, git=git)
    if not matcher.is_available():
        logger.warning("%s not found; shipping every file under %s", git, recipe_root)
        return NullIgnoreMatcher()
    return matcher

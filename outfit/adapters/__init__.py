"""Adapters — executors and ignore matchers for external tools.

Public re-exports for convenient access.
"""

from outfit.adapters.base import Executor, OutputSink
from outfit.adapters.mock import MockExecutor
from outfit.adapters.registry import build_executor, build_ignore_matcher
from outfit.adapters.shell.local import LocalExecutor
from outfit.adapters.shell.remote import SshExecutor
from outfit.adapters.vcs.git import GitIgnoreMatcher, IgnoreMatcher, NullIgnoreMatcher

__all__ = [
    "Executor",
    "GitIgnoreMatcher",
    "IgnoreMatcher",
    "LocalExecutor",
    "MockExecutor",
    "NullIgnoreMatcher",
    "OutputSink",
    "SshExecutor",
    "build_executor",
    "build_ignore_matcher",
]

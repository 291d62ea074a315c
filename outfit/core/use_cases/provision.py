"""
Provision use case — the whole run, from parsed flags to applied recipes.

    probe architecture → fetch engine → package recipes → apply

Stages run strictly in order inside one ephemeral work directory. The
first failure raises and aborts; the work directory is removed on
every exit path (success, error, KeyboardInterrupt, SystemExit).
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from outfit.adapters.base import Executor, OutputSink
from outfit.adapters.registry import build_executor, build_ignore_matcher
from outfit.adapters.vcs.git import IgnoreMatcher
from outfit.core.config.loader import resolve_cache_root
from outfit.core.models.invocation import InvocationConfig
from outfit.core.models.settings import Settings
from outfit.core.services.applier import apply_recipes
from outfit.core.services.arch_probe import probe_architecture
from outfit.core.services.bootstrap import ENGINE_FILE
from outfit.core.services.engine_cache import Downloader, download, fetch_engine
from outfit.core.services.packager import package_recipes

logger = logging.getLogger(__name__)

# Called with a short message as each stage starts
StageCallback = Callable[[str], None]


@dataclass
class ProvisionResult:
    """Outcome of a successful run."""

    target: str
    arch: str = ""
    engine_version: str = ""
    cache_hit: bool = False
    archive_sha256: str = ""
    files: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    remote_dir: str = ""

    def to_dict(self) -> dict:
        return {
            "target": self.target,
            "arch": self.arch,
            "engine_version": self.engine_version,
            "cache_hit": self.cache_hit,
            "archive_sha256": self.archive_sha256,
            "files": self.files,
            "skipped": self.skipped,
            "remote_dir": self.remote_dir,
        }


def _noop(_: str) -> None:
    pass


def run_provision(
    config: InvocationConfig,
    settings: Settings | None = None,
    *,
    sink: OutputSink,
    executor: Executor | None = None,
    matcher: IgnoreMatcher | None = None,
    recipe_root: Path | None = None,
    cache_root: Path | None = None,
    downloader: Downloader = download,
    on_stage: StageCallback = _noop,
) -> ProvisionResult:
    """Provision the target described by ``config``.

    Args:
        config: Parsed invocation.
        settings: Engine pin and defaults (default: built-in).
        sink: Receives the target's output while the engine runs.
        executor: Override the transport (default: from ``config``).
        matcher: Override ignore rules (default: git, rooted at ``recipe_root``).
        recipe_root: Directory holding the recipes (default: cwd).
        cache_root: Engine cache root (default: resolved from env/settings).
        downloader: Fetches a URL to bytes; injectable for tests.
        on_stage: Progress callback for status lines.

    Raises:
        OutfitError: Any stage failed.
    """
    settings = settings or Settings()
    recipe_root = (recipe_root or Path.cwd()).resolve()
    executor = executor or build_executor(config)
    matcher = matcher or build_ignore_matcher(recipe_root)
    cache_root = cache_root or resolve_cache_root(settings)
    release = settings.engine

    result = ProvisionResult(target=executor.describe(), engine_version=release.version)

    with tempfile.TemporaryDirectory(prefix="outfit-") as tmp:
        work_dir = Path(tmp)
        logger.debug("Work directory %s", work_dir)

        on_stage(f"Detecting architecture of {executor.describe()}")
        result.arch = probe_architecture(executor)

        on_stage(f"Fetching {release.name} {release.version} for {result.arch}")
        fetched = fetch_engine(
            release,
            result.arch,
            work_dir / ENGINE_FILE,
            cache_root,
            downloader=downloader,
        )
        result.cache_hit = fetched.cache_hit

        on_stage("Packaging recipes")
        package = package_recipes(
            recipe_root,
            [Path(p) for p in config.configs],
            work_dir,
            matcher,
        )
        result.archive_sha256 = package.sha256
        result.files = package.files
        result.skipped = package.skipped

        on_stage(f"Applying {' '.join(config.recipes)}")
        applied = apply_recipes(
            executor,
            config,
            work_dir,
            package.archive,
            fetched.path,
            sink,
        )
        result.remote_dir = applied.remote_dir

    return result

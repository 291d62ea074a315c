"""
Recipe packager — turn the recipe directory into one reproducible tarball.

Steps:
    1. Merge config fragments into config.yaml (plain concatenation,
       the engine resolves duplicate keys; ``{}`` when there are none).
    2. Walk the recipe directory, dropping ignored paths and anything
       that is not a regular file once symlinks are followed.
    3. Mirror the survivors into a staging directory, following links.
    4. Tar + gzip the staging directory with fixed timestamps, owners
       and modes, so identical input gives byte-identical output.
"""

from __future__ import annotations

import gzip
import hashlib
import io
import logging
import os
import shutil
import tarfile
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from outfit.adapters.vcs.git import IgnoreMatcher

logger = logging.getLogger(__name__)

CONFIG_NAME = "config.yaml"
ARCHIVE_NAME = "recipes.tar.gz"
EMPTY_CONFIG = b"{}\n"

# Every archive entry, and the gzip header, carry this timestamp
FIXED_MTIME = int(datetime(2000, 1, 1, tzinfo=UTC).timestamp())

_SKIP_DIRS = {".git"}


@dataclass
class PackageResult:
    """What went into the archive."""

    archive: Path
    files: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    sha256: str = ""


# ── Config merge ────────────────────────────────────────────────────


def merge_configs(paths: Sequence[Path], dest: Path) -> Path:
    """Concatenate config fragments in order into ``dest``."""
    if not paths:
        dest.write_bytes(EMPTY_CONFIG)
        return dest

    with dest.open("wb") as out:
        for path in paths:
            data = Path(path).read_bytes()
            out.write(data)
            if data and not data.endswith(b"\n"):
                out.write(b"\n")
            logger.debug("Merged config fragment %s (%d bytes)", path, len(data))
    return dest


# ── Tree selection ──────────────────────────────────────────────────


def collect_files(root: Path, matcher: IgnoreMatcher) -> tuple[list[Path], list[Path]]:
    """Walk ``root`` and pick the files to ship.

    Returns:
        (kept, skipped), both sorted. ``skipped`` holds ignored files and
        entries that are not regular files after dereferencing (broken
        links, links to directories, sockets, fifos).
    """
    candidates: list[Path] = []
    skipped: list[Path] = []

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in _SKIP_DIRS)
        base = Path(dirpath)
        for name in sorted(filenames):
            candidates.append(base / name)
        # os.walk lists symlinked directories but does not descend into them
        for name in dirnames:
            if (base / name).is_symlink():
                skipped.append(base / name)

    regular = []
    for path in candidates:
        if path.is_file():
            regular.append(path)
        else:
            skipped.append(path)

    ignored = matcher.ignored(regular)
    kept = [p for p in regular if p not in ignored]
    skipped.extend(ignored)

    return sorted(kept), sorted(skipped)


def stage_tree(root: Path, files: Sequence[Path], stage_dir: Path) -> list[str]:
    """Copy ``files`` under ``stage_dir`` with their paths relative to ``root``.

    Symlinks are followed: the staged file holds the target's content.
    """
    staged = []
    for path in files:
        rel = path.relative_to(root)
        target = stage_dir / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(path, target)
        shutil.copymode(path, target)
        staged.append(rel.as_posix())
    return staged


# ── Archive ─────────────────────────────────────────────────────────


def _tarinfo(path: Path, arcname: str) -> tarfile.TarInfo:
    info = tarfile.TarInfo(name=arcname)
    st = path.stat()
    info.size = st.st_size
    info.mtime = FIXED_MTIME
    info.mode = 0o755 if st.st_mode & 0o111 else 0o644
    info.uid = info.gid = 0
    info.uname = info.gname = ""
    return info


def build_archive(stage_dir: Path, archive_path: Path) -> str:
    """Write a deterministic ``.tar.gz`` of ``stage_dir``.

    Only regular files are stored, sorted by path; extraction recreates
    parent directories. Returns the archive's sha256.
    """
    entries = sorted(
        (p.relative_to(stage_dir).as_posix(), p)
        for p in stage_dir.rglob("*")
        if p.is_file()
    )

    buf = io.BytesIO()
    with gzip.GzipFile(filename="", mode="wb", fileobj=buf, mtime=FIXED_MTIME) as gz:
        with tarfile.open(fileobj=gz, mode="w", format=tarfile.PAX_FORMAT) as tar:
            for arcname, path in entries:
                with path.open("rb") as fh:
                    tar.addfile(_tarinfo(path, arcname), fh)

    data = buf.getvalue()
    archive_path.write_bytes(data)
    return hashlib.sha256(data).hexdigest()


# ── Entry point ─────────────────────────────────────────────────────


def package_recipes(
    recipe_root: Path,
    configs: Sequence[Path],
    work_dir: Path,
    matcher: IgnoreMatcher,
) -> PackageResult:
    """Build ``work_dir/recipes.tar.gz`` from the recipe tree and configs.

    The merged config is written last, so it replaces any config.yaml
    that happens to sit at the top of the recipe tree.
    """
    stage_dir = work_dir / "stage"
    stage_dir.mkdir()

    kept, skipped = collect_files(recipe_root, matcher)
    staged = stage_tree(recipe_root, kept, stage_dir)
    merge_configs(configs, stage_dir / CONFIG_NAME)
    if CONFIG_NAME not in staged:
        staged.append(CONFIG_NAME)

    archive = work_dir / ARCHIVE_NAME
    digest = build_archive(stage_dir, archive)

    skipped_rel = [p.relative_to(recipe_root).as_posix() for p in skipped]
    for rel in skipped_rel:
        logger.debug("Skipped %s", rel)
    logger.info(
        "Packaged %d files (%d skipped) into %s", len(staged), len(skipped), archive
    )
    return PackageResult(
        archive=archive,
        files=sorted(staged),
        skipped=skipped_rel,
        sha256=digest,
    )

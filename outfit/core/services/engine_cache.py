"""
Engine cache — fetch the pinned engine build for an architecture.

Cache layout (one file per version + architecture, no metadata)::

    <cache_root>/<engine>/<engine>-<version>-<arch>

A hit is copied into the work directory without touching the network.
A miss downloads the release asset, unpacks the binary if the asset is
a tarball, optionally checks its sha256, and stores it. Entries are
never invalidated: a new version pin simply uses a new key.

Two concurrent runs filling the same empty entry both download and
both replace the file with identical content; the write goes through
a temp file + rename so a reader never sees a half-written binary.
"""

from __future__ import annotations

import hashlib
import io
import logging
import os
import shutil
import tarfile
import urllib.error
import urllib.request
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from outfit import __version__
from outfit.core.errors import IntegrityError, TransportError, UnsupportedArchitectureError
from outfit.core.models.settings import EngineRelease

logger = logging.getLogger(__name__)

_TARBALL_SUFFIXES = (".tar.gz", ".tgz")

Downloader = Callable[[str], bytes]


@dataclass(frozen=True)
class EngineFetch:
    """Where the engine ended up and how it got there."""

    path: Path
    cache_path: Path
    cache_hit: bool
    url: str | None = None
    sha256: str | None = None


def cache_path(cache_root: Path, release: EngineRelease, arch: str) -> Path:
    return cache_root / release.name / f"{release.name}-{release.version}-{arch}"


def download(url: str) -> bytes:
    """GET ``url`` and return the body. Any failure is a TransportError.

    No timeout: a stalled transfer blocks until the OS gives up on it.
    """
    logger.info("Downloading %s", url)
    req = urllib.request.Request(url, headers={"User-Agent": f"outfit/{__version__}"})
    try:
        with urllib.request.urlopen(req) as resp:
            return resp.read()
    except urllib.error.HTTPError as e:
        raise TransportError(f"could not download engine from {url}: HTTP {e.code}") from e
    except (urllib.error.URLError, OSError) as e:
        raise TransportError(f"could not download engine from {url}: {e}") from e


def extract_binary(payload: bytes, url: str) -> bytes:
    """Return the engine binary from a downloaded asset.

    Plain binaries pass through. Tarballs must hold exactly one regular
    file, which is the binary.
    """
    if not url.endswith(_TARBALL_SUFFIXES):
        return payload

    try:
        with tarfile.open(fileobj=io.BytesIO(payload), mode="r:gz") as tar:
            members = [m for m in tar.getmembers() if m.isfile()]
            if len(members) != 1:
                names = ", ".join(m.name for m in members) or "nothing"
                raise TransportError(
                    f"expected a single binary in {url}, found: {names}"
                )
            fh = tar.extractfile(members[0])
            if fh is None:
                raise TransportError(f"could not read {members[0].name} from {url}")
            return fh.read()
    except tarfile.TarError as e:
        raise TransportError(f"could not unpack engine archive from {url}: {e}") from e


def verify_checksum(payload: bytes, expected: str | None, url: str) -> str:
    """Check ``payload`` against ``expected`` (hex, optional ``sha256:`` prefix).

    Returns the actual digest. Without an expected value the download is
    accepted and logged as unverified.
    """
    actual = hashlib.sha256(payload).hexdigest()
    if not expected:
        logger.warning("Engine download from %s is unverified (sha256=%s)", url, actual)
        return actual

    wanted = expected.removeprefix("sha256:").lower()
    if actual != wanted:
        raise IntegrityError(
            f"SHA256 mismatch for {url}\n"
            f"Expected: {wanted}\n"
            f"Got:      {actual}"
        )
    return actual


def fetch_engine(
    release: EngineRelease,
    arch: str,
    dest: Path,
    cache_root: Path,
    downloader: Downloader = download,
) -> EngineFetch:
    """Put an executable engine for ``arch`` at ``dest``.

    Raises:
        UnsupportedArchitectureError: Cache miss and no URL for ``arch``.
            Raised before any network access.
        TransportError: Download or unpacking failed.
        IntegrityError: The download did not match the pinned checksum.
    """
    entry = cache_path(cache_root, release, arch)

    if entry.is_file():
        logger.info("Using cached engine %s", entry)
        shutil.copyfile(entry, dest)
        dest.chmod(0o755)
        return EngineFetch(path=dest, cache_path=entry, cache_hit=True)

    url = release.url_for(arch)
    if not url:
        raise UnsupportedArchitectureError(arch, list(release.urls))

    payload = downloader(url)
    digest = verify_checksum(payload, release.checksum_for(arch), url)
    binary = extract_binary(payload, url)

    dest.write_bytes(binary)
    dest.chmod(0o755)
    _store(entry, binary)

    return EngineFetch(path=dest, cache_path=entry, cache_hit=False, url=url, sha256=digest)


def _store(entry: Path, binary: bytes) -> None:
    """Persist a cache entry atomically. A failed write only costs a re-download."""
    tmp = entry.with_name(f"{entry.name}.{os.getpid()}.tmp")
    try:
        entry.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_bytes(binary)
        tmp.chmod(0o755)
        os.replace(tmp, entry)
    except OSError as e:
        logger.warning("Could not cache engine at %s: %s", entry, e)
        tmp.unlink(missing_ok=True)
        return
    logger.info("Cached engine at %s", entry)

"""
Settings model — the pinned engine release and project defaults.

Loaded from an optional outfit.yml next to the recipes. Every field
has a default, so a project without the file still works.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from outfit.core.models.invocation import DEFAULT_RECIPE

ENGINE_NAME = "mitamae"
ENGINE_VERSION = "1.14.0"

_RELEASE_BASE = (
    f"https://github.com/itamae-kitchen/mitamae/releases/download/v{ENGINE_VERSION}"
)

# `uname -m` output -> release asset
DEFAULT_ENGINE_URLS: dict[str, str] = {
    "x86_64": f"{_RELEASE_BASE}/mitamae-x86_64-linux.tar.gz",
    "amd64": f"{_RELEASE_BASE}/mitamae-x86_64-linux.tar.gz",
    "aarch64": f"{_RELEASE_BASE}/mitamae-aarch64-linux.tar.gz",
    "arm64": f"{_RELEASE_BASE}/mitamae-aarch64-linux.tar.gz",
    "armv7l": f"{_RELEASE_BASE}/mitamae-armhf-linux.tar.gz",
    "armv6l": f"{_RELEASE_BASE}/mitamae-armhf-linux.tar.gz",
    "i686": f"{_RELEASE_BASE}/mitamae-i386-linux.tar.gz",
    "i386": f"{_RELEASE_BASE}/mitamae-i386-linux.tar.gz",
}


class EngineRelease(BaseModel):
    """A pinned engine build: name, version and per-architecture assets.

    ``sha256`` is optional. When an architecture has an entry there,
    the download must match it or it is rejected.
    """

    name: str = ENGINE_NAME
    version: str = ENGINE_VERSION
    urls: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_ENGINE_URLS))
    sha256: dict[str, str] = Field(default_factory=dict)

    def url_for(self, arch: str) -> str | None:
        return self.urls.get(arch)

    def checksum_for(self, arch: str) -> str | None:
        return self.sha256.get(arch)


class Settings(BaseModel):
    """Project-level settings (outfit.yml)."""

    engine: EngineRelease = Field(default_factory=EngineRelease)
    default_recipe: str = DEFAULT_RECIPE
    cache_dir: str | None = None

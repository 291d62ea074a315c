"""
Shared test fixtures and configuration.
"""

import subprocess
from pathlib import Path

import pytest

from outfit.core.models.settings import EngineRelease

STUB_ENGINE = """\
#!/bin/sh
echo "engine $*"
echo "config: $(cat config.yaml)"
"""


@pytest.fixture
def recipe_dir(tmp_path: Path) -> Path:
    """A recipe directory holding only main.rb."""
    root = tmp_path / "recipes"
    root.mkdir()
    (root / "main.rb").write_text('package "git"\n')
    return root


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    root = tmp_path / "cache"
    root.mkdir()
    return root


@pytest.fixture
def release() -> EngineRelease:
    return EngineRelease(
        name="mitamae",
        version="9.9.9",
        urls={"x86_64": "https://example.invalid/mitamae-x86_64-linux"},
    )


@pytest.fixture
def host_arch() -> str:
    """This machine's ``uname -m``."""
    return subprocess.run(
        ["uname", "-m"], capture_output=True, text=True, check=True
    ).stdout.strip()


@pytest.fixture
def stub_engine() -> bytes:
    return STUB_ENGINE.encode()



"""
Settings loader — reads outfit.yml into the Settings model.

The file is optional. When present it is read as YAML and validated
against the Pydantic schema; anything malformed is a ConfigError.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from outfit.core.errors import ConfigError
from outfit.core.models.settings import Settings

logger = logging.getLogger(__name__)

# Default settings filename, looked up in the recipe directory
SETTINGS_FILE = "outfit.yml"

# Cache root override
CACHE_DIR_ENV = "OUTFIT_CACHE_DIR"


def find_settings_file(recipe_root: Path | None = None) -> Path | None:
    """Return the outfit.yml in ``recipe_root`` (default: cwd), if any."""
    candidate = (recipe_root or Path.cwd()) / SETTINGS_FILE
    return candidate if candidate.is_file() else None


def load_settings(path: Path | None = None) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit path to a settings file. None means defaults.

    Raises:
        ConfigError: If the file cannot be read or is invalid.
    """
    if path is None:
        logger.debug("No %s found, using defaults", SETTINGS_FILE)
        return Settings()

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return Settings()

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e

    logger.info(
        "Loaded settings: engine %s %s (%d architectures)",
        settings.engine.name,
        settings.engine.version,
        len(settings.engine.urls),
    )
    return settings


def resolve_cache_root(settings: Settings) -> Path:
    """Pick the engine cache root.

    Precedence: OUTFIT_CACHE_DIR > settings.cache_dir >
    $XDG_CACHE_HOME/outfit > ~/.cache/outfit.
    """
    override = os.environ.get(CACHE_DIR_ENV)
    if override:
        return Path(override).expanduser()
    if settings.cache_dir:
        return Path(settings.cache_dir).expanduser()
    xdg = os.environ.get("XDG_CACHE_HOME")
    base = Path(xdg).expanduser() if xdg else Path.home() / ".cache"
    return base / "outfit"

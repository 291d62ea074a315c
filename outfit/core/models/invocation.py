"""
Invocation model — everything the user asked for on the command line.

Built once by the CLI and threaded through every pipeline stage.
Frozen: nothing downstream may change what was requested.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

DEFAULT_RECIPE = "main.rb"

_ENV_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def split_env(entry: str) -> tuple[str, str]:
    """Split ``KEY=VALUE`` at the first ``=``.

    Raises:
        ValueError: If there is no ``=`` or the key is not a shell name.
    """
    if "=" not in entry:
        raise ValueError(f"expected KEY=VALUE, got {entry!r}")
    key, value = entry.split("=", 1)
    if not _ENV_KEY_RE.match(key):
        raise ValueError(f"invalid environment variable name: {key!r}")
    return key, value


class InvocationConfig(BaseModel):
    """Parsed flags and positionals for one run."""

    model_config = ConfigDict(frozen=True)

    destination: str = ""
    recipes: tuple[str, ...] = (DEFAULT_RECIPE,)
    configs: tuple[str, ...] = ()
    env: tuple[str, ...] = ()

    user_mode: bool = False
    forward_agent: bool = False
    dry_run: bool = False
    local: bool = False

    @field_validator("env")
    @classmethod
    def _check_env(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for entry in value:
            split_env(entry)
        return value

    @field_validator("recipes")
    @classmethod
    def _default_recipes(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return value or (DEFAULT_RECIPE,)

    @model_validator(mode="after")
    def _check_destination(self) -> InvocationConfig:
        if not self.local and not self.destination:
            raise ValueError("destination is required unless running locally")
        return self

    @property
    def env_pairs(self) -> list[tuple[str, str]]:
        """Environment overrides as (key, value), in the order given."""
        return [split_env(entry) for entry in self.env]

    @property
    def target_label(self) -> str:
        """Human label for where recipes will run."""
        return "localhost (local mode)" if self.local else self.destination

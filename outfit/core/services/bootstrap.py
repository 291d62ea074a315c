"""
Bootstrap script — the shell program that runs on the target.

It lives in the remote temp directory next to the archive and the
engine. The recipes are unpacked into a subdirectory of their own, so
nothing in the recipe tree can replace the engine or the script, and
the engine runs from there as ``../engine``. The whole temp directory
is deleted on the way out whatever the outcome.

This is the one place where argv crosses a shell boundary as text, so
every user-supplied word is quoted with ``shlex.quote``.
"""

from __future__ import annotations

import shlex

from outfit.core.models.invocation import InvocationConfig
from outfit.core.services.packager import ARCHIVE_NAME, CONFIG_NAME

BOOTSTRAP_NAME = "bootstrap.sh"
ENGINE_FILE = "engine"
UNPACK_DIR = "recipes"
PRIVILEGE_WRAPPER = "sudo"

_TEMPLATE = """\
#!/bin/sh
# Generated by outfit. Removes its own directory on exit.
set -eu
dir=$(cd "$(dirname "$0")" && pwd)
trap 'rm -rf "$dir"' EXIT
trap 'exit 130' HUP INT TERM
cd "$dir"
mkdir {unpack}
tar -xzf {archive} -C {unpack}
cd {unpack}
{invocation}
"""


def engine_command(config: InvocationConfig, engine: str = ENGINE_FILE) -> str:
    """The engine invocation line, shell-quoted.

    ``[sudo] [KEY=VALUE ...] ../engine local [--dry-run] -y config.yaml RECIPE...``

    Runs from inside the unpacked recipe tree; the engine sits one
    level up.
    """
    words: list[str] = []

    if not config.user_mode:
        words.append(PRIVILEGE_WRAPPER)
        if config.forward_agent:
            # sudo resets the environment; carry the agent socket across
            words.append('SSH_AUTH_SOCK="${SSH_AUTH_SOCK:-}"')

    for key, value in config.env_pairs:
        words.append(f"{key}={shlex.quote(value)}")

    words += [shlex.quote(f"../{engine}"), "local"]
    if config.dry_run:
        words.append("--dry-run")
    words += ["-y", CONFIG_NAME]
    words += [shlex.quote(recipe) for recipe in config.recipes]

    return " ".join(words)


def render_bootstrap(
    config: InvocationConfig,
    archive_name: str = ARCHIVE_NAME,
    engine: str = ENGINE_FILE,
) -> str:
    return _TEMPLATE.format(
        unpack=UNPACK_DIR,
        archive=shlex.quote(archive_name),
        invocation=engine_command(config, engine),
    )

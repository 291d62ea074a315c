"""
outfit — CLI entrypoint.

Usage:
    outfit [options] DESTINATION [RECIPE]...
    outfit --local [options] [RECIPE]...
    python -m outfit.main --help
"""

from __future__ import annotations

import logging
import os
import signal
import sys
from typing import NoReturn

import click

from outfit import __version__
from outfit.core.config.loader import find_settings_file, load_settings
from outfit.core.errors import OutfitError
from outfit.core.models.invocation import InvocationConfig, split_env
from outfit.core.observability.logging_config import (
    LOG_FILE_ENV,
    LOG_FILE_LEVEL_ENV,
    resolve_level,
    setup_logging,
)
from outfit.core.services.output_filter import for_stream
from outfit.core.use_cases.provision import run_provision

logger = logging.getLogger(__name__)

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

# Turned into SystemExit so the work directory is unwound, as on Ctrl-C
EXIT_SIGNALS = (signal.SIGTERM, signal.SIGHUP)


def fatal(message: str) -> NoReturn:
    """Report a fatal error on stderr and exit 1. Every failure ends here."""
    click.secho(f"❌ {message}", fg="red", bold=True, err=True)
    sys.exit(1)


def _status(message: str) -> None:
    click.secho(f"⚡ {message}", fg="cyan", bold=True, err=True)


def _validate_env(
    ctx: click.Context, param: click.Parameter, value: tuple[str, ...]
) -> tuple[str, ...]:
    for entry in value:
        try:
            split_env(entry)
        except ValueError as e:
            raise click.BadParameter(str(e), ctx=ctx, param=param) from e
    return value


def _terminate(signum: int, frame: object) -> None:
    raise SystemExit(128 + signum)


@click.command(context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__, prog_name="outfit")
@click.option("--user", "-u", "user_mode", is_flag=True, help="Run the engine without sudo.")
@click.option("-A", "forward_agent", is_flag=True, help="Forward the ssh agent to the target.")
@click.option("--dry-run", "-d", is_flag=True, help="Ask the engine to report changes only.")
@click.option("--local", "-l", is_flag=True, help="Provision this machine; no DESTINATION.")
@click.option(
    "--env",
    "-e",
    "env",
    multiple=True,
    metavar="KEY=VALUE",
    callback=_validate_env,
    help="Environment variable for the engine (repeatable).",
)
@click.option(
    "--config",
    "-c",
    "configs",
    multiple=True,
    metavar="PATH",
    type=click.Path(exists=True, dir_okay=False),
    help="Config fragment merged into config.yaml (repeatable).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.argument("args", nargs=-1, metavar="[DESTINATION] [RECIPE]...")
def cli(
    user_mode: bool,
    forward_agent: bool,
    dry_run: bool,
    local: bool,
    env: tuple[str, ...],
    configs: tuple[str, ...],
    verbose: bool,
    debug: bool,
    args: tuple[str, ...],
) -> None:
    """Provision DESTINATION by running RECIPEs on it with mitamae.

    The current directory is packaged (minus git-ignored files), shipped
    with a pinned mitamae build, and run with sudo.

    Examples:

        outfit web1.example.com

        outfit -e ROLE=db deploy@db1 base.rb db.rb

        outfit --local --dry-run
    """
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose),
        log_file=os.environ.get(LOG_FILE_ENV),
        log_file_level=os.environ.get(LOG_FILE_LEVEL_ENV),
    )

    try:
        settings = load_settings(find_settings_file())
    except OutfitError as e:
        fatal(str(e))

    if local:
        destination, recipes = "", args
    elif not args:
        raise click.UsageError("Missing DESTINATION (or pass --local).")
    else:
        destination, recipes = args[0], args[1:]

    config = InvocationConfig(
        destination=destination,
        recipes=recipes or (settings.default_recipe,),
        configs=configs,
        env=env,
        user_mode=user_mode,
        forward_agent=forward_agent,
        dry_run=dry_run,
        local=local,
    )

    click.echo(f"   Destination: {config.target_label}", err=True)
    click.echo(f"   Recipes:     {' '.join(config.recipes)}", err=True)
    if config.configs:
        click.echo(f"   Configs:     {' '.join(config.configs)}", err=True)

    output = for_stream(click.get_binary_stream("stdout"))
    previous = {signum: signal.signal(signum, _terminate) for signum in EXIT_SIGNALS}
    try:
        result = run_provision(config, settings, sink=output.write, on_stage=_status)
    except OutfitError as e:
        output.close()
        fatal(str(e))
    finally:
        output.close()
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    logger.debug("Run summary: %s", result.to_dict())
    if result.skipped:
        click.echo(f"   Skipped:     {len(result.skipped)} ignored or unshippable files", err=True)
    click.secho("✅ Recipes applied", fg="green", bold=True, err=True)


if __name__ == "__main__":
    cli()

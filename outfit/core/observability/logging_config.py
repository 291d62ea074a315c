"""
Logging configuration — set up once by the CLI entrypoint.

stdout belongs to the target: the engine's output is streamed there
byte for byte. Everything outfit says about itself, log records
included, goes to stderr next to the ⚡ stage lines.

Console level, highest precedence first:
    --debug  >  --verbose  >  OUTFIT_LOG_LEVEL  >  WARNING

OUTFIT_LOG_FILE adds a plain-text file log at OUTFIT_LOG_FILE_LEVEL
(default: the console level), useful for keeping a record of
unattended runs.
"""

from __future__ import annotations

import logging
import os
import sys

import click

LOG_LEVEL_ENV = "OUTFIT_LOG_LEVEL"
LOG_FILE_ENV = "OUTFIT_LOG_FILE"
LOG_FILE_LEVEL_ENV = "OUTFIT_LOG_FILE_LEVEL"

_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_LEVEL_COLORS = {
    logging.DEBUG: "bright_black",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "red",
}


def level_from_name(name: str | None, default: int = logging.WARNING) -> int:
    """``"info"`` → ``logging.INFO``; unknown or empty names give ``default``."""
    numeric = logging.getLevelName((name or "").upper())
    return numeric if isinstance(numeric, int) else default


def resolve_level(debug: bool = False, verbose: bool = False) -> int:
    """Pick the console level from CLI flags and the environment."""
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return level_from_name(os.environ.get(LOG_LEVEL_ENV))


class ConsoleFormatter(logging.Formatter):
    """Log lines that sit under the CLI's status output.

    Indented to line up with the Destination/Recipes echoes. At DEBUG
    the logger name is shown so a line can be traced to its module.
    Coloured by level when ``color`` is set.
    """

    def __init__(self, show_names: bool = False, color: bool = False):
        super().__init__("%(name)s: %(message)s" if show_names else "%(message)s")
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if record.levelno >= logging.WARNING:
            text = f"{record.levelname.lower()}: {text}"
        text = f"   {text}"
        fg = _LEVEL_COLORS.get(record.levelno)
        if self.color and fg:
            return click.style(text, fg=fg)
        return text


def setup_logging(
    level: int = logging.WARNING,
    log_file: str | None = None,
    log_file_level: str | None = None,
    color: bool | None = None,
) -> None:
    """Configure logging for the process, replacing any earlier setup.

    Args:
        level: Console level (a ``logging`` constant).
        log_file: Optional path of a file log.
        log_file_level: Level name for the file log; defaults to ``level``.
        color: Colour console lines; default is "stderr is a terminal".
    """
    if color is None:
        color = sys.stderr.isatty()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(ConsoleFormatter(show_names=level <= logging.DEBUG, color=color))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)

    effective = level
    if log_file:
        file_level = level_from_name(log_file_level, default=level)
        effective = min(effective, file_level)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT))
        root.addHandler(fh)

    root.setLevel(effective)

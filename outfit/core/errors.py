"""
Error taxonomy — every failure the provisioning pipeline can report.

The pipeline raises these; the CLI catches ``OutfitError`` at the top
and routes it through a single fatal reporter (red line on stderr,
exit status 1). Usage errors are not here: click owns those.
"""

from __future__ import annotations


class OutfitError(Exception):
    """Base class for fatal pipeline errors."""


class ConfigError(OutfitError):
    """Raised when outfit.yml (or another config input) is invalid."""


class UnsupportedArchitectureError(OutfitError):
    """Raised when the probed architecture has no engine download."""

    def __init__(self, arch: str, known: list[str] | None = None):
        self.arch = arch
        self.known = sorted(known or [])
        message = f"unsupported architecture: {arch!r}"
        if self.known:
            message += f" (known: {', '.join(self.known)})"
        super().__init__(message)


class TransportError(OutfitError):
    """Probe, download, transfer or remote execution failed."""


class IntegrityError(TransportError):
    """A downloaded engine did not match its pinned checksum."""

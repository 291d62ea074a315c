"""Target architecture probe."""

from __future__ import annotations

import logging

from outfit.adapters.base import Executor
from outfit.core.errors import TransportError

logger = logging.getLogger(__name__)

PROBE_ARGV = ["uname", "-m"]


def probe_architecture(executor: Executor) -> str:
    """Return the target's ``uname -m``. Any failure is fatal, no retry."""
    result = executor.run(PROBE_ARGV)
    if result.failed:
        raise TransportError(
            f"could not detect architecture of {executor.describe()}: {result.error}"
        )

    arch = result.stdout.strip()
    if not arch:
        raise TransportError(
            f"could not detect architecture of {executor.describe()}: empty output"
        )

    logger.info("Target %s is %s", executor.describe(), arch)
    return arch

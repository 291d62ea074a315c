"""
Domain models — Pydantic types for outfit.

    from outfit.core.models import InvocationConfig, CommandResult, Settings
"""

from outfit.core.models.command import CommandResult
from outfit.core.models.invocation import DEFAULT_RECIPE, InvocationConfig, split_env
from outfit.core.models.settings import EngineRelease, Settings

__all__ = [
    "CommandResult",
    "DEFAULT_RECIPE",
    "EngineRelease",
    "InvocationConfig",
    "Settings",
    "split_env",
]

"""
RuntimeConfig — settings the engine reads, never writes.

Built once by ``aptupdates.core.config.loader`` and handed to the
engine's constructor.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_LISTS_DIR = Path("/var/lib/apt/lists")

# apt-get simulations can be slow, especially on small ARM hosts
MIN_TIMEOUT_SECONDS = 10


class RuntimeConfig(BaseModel):
    """Immutable runtime settings for the update checker."""

    model_config = ConfigDict(frozen=True)

    debug_logging: bool = False
    warning_threshold: int = 10
    timeout_seconds: int = Field(default=15, ge=MIN_TIMEOUT_SECONDS)
    lists_dir: Path = DEFAULT_LISTS_DIR
    classifier_workers: int = Field(default=1, ge=1)

"""
Domain models — Pydantic types for the update checker.

All models are re-exported here for convenient access:

    from aptupdates.core.models import UpdateRecord, CheckSnapshot, RuntimeConfig
"""

from aptupdates.core.models.config import RuntimeConfig
from aptupdates.core.models.update import (
    CategorizedUpdates,
    CategoryBucket,
    CheckResult,
    CheckSnapshot,
    UpdateRecord,
    UpdateType,
)

__all__ = [
    # config.py
    "RuntimeConfig",
    # update.py
    "CategorizedUpdates",
    "CategoryBucket",
    "CheckResult",
    "CheckSnapshot",
    "UpdateRecord",
    "UpdateType",
]

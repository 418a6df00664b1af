"""
Update models — what a single check produces.

UpdateRecord is one pending upgrade parsed from APT output.
CategorizedUpdates groups records into the five buckets reported to
the monitoring caller, and CheckSnapshot / CheckResult are the two
result shapes (all-updates variant and single-type variant).

Every model here is a value object created and discarded within one
check call.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class UpdateType(StrEnum):
    """Update category selectable by the caller."""

    ALL = "all"
    SECURITY = "security"
    RECOMMENDED = "recommended"
    OPTIONAL = "optional"


class UpdateRecord(BaseModel):
    """One package with a pending upgrade."""

    name: str
    current_version: str | None = None
    target_version: str
    is_phased: bool = False

    @field_validator("target_version")
    @classmethod
    def _strip_brackets(cls, value: str) -> str:
        # '[' and ']' only ever come from the surrounding APT output
        return value.replace("[", "").replace("]", "").strip()

    @field_validator("current_version")
    @classmethod
    def _empty_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None

    def to_dict(self) -> dict[str, Any]:
        """Caller-facing shape: optional keys are left out when unset."""
        result: dict[str, Any] = {"name": self.name}
        if self.current_version:
            result["current_version"] = self.current_version
        result["target_version"] = self.target_version
        if self.is_phased:
            result["is_phased"] = True
        return result


class CategoryBucket(BaseModel):
    """Records that fall into one category, in encounter order.

    ``names`` and ``count`` are derived from ``details`` so the three
    can never disagree.
    """

    details: list[UpdateRecord] = Field(default_factory=list)

    @property
    def names(self) -> list[str]:
        return [r.name for r in self.details]

    @property
    def count(self) -> int:
        return len(self.details)

    def add(self, record: UpdateRecord) -> None:
        self.details.append(record)

    def to_dict(self, prefix: str) -> dict[str, Any]:
        """Flatten into ``<prefix>_count/_list/_details`` keys.

        The list and details keys are omitted when the bucket is empty.
        """
        result: dict[str, Any] = {f"{prefix}_count": self.count}
        if self.details:
            result[f"{prefix}_list"] = self.names
            result[f"{prefix}_details"] = [r.to_dict() for r in self.details]
        return result


class CategorizedUpdates(BaseModel):
    """All pending updates split into the reported categories.

    ``security``, ``optional`` and ``recommended`` overlap: every
    non-phased package is recommended and may also be security and/or
    optional. ``phased`` is disjoint from the other three.
    """

    all: CategoryBucket = Field(default_factory=CategoryBucket)
    security: CategoryBucket = Field(default_factory=CategoryBucket)
    recommended: CategoryBucket = Field(default_factory=CategoryBucket)
    optional: CategoryBucket = Field(default_factory=CategoryBucket)
    phased: CategoryBucket = Field(default_factory=CategoryBucket)

    def bucket(self, update_type: UpdateType) -> CategoryBucket:
        """Return the bucket backing a caller-selectable update type."""
        return getattr(self, update_type.value)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for name in ("security", "recommended", "optional", "all", "phased"):
            result.update(getattr(self, name).to_dict(f"{name}_updates"))
        return result


class CheckSnapshot(BaseModel):
    """Result of a full (all-categories) check."""

    categorized: CategorizedUpdates = Field(default_factory=CategorizedUpdates)
    check_duration_seconds: float = 0.0
    last_index_refresh_unix_time: int = 0

    @property
    def available_updates(self) -> int:
        return self.categorized.all.count

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the all-updates JSON object."""
        result: dict[str, Any] = {"available_updates": self.available_updates}
        if self.categorized.all.details:
            result["package_details_list"] = [
                r.to_dict() for r in self.categorized.all.details
            ]
        result.update(self.categorized.to_dict())
        result["check_duration_seconds"] = self.check_duration_seconds
        result["last_apt_update_time"] = self.last_index_refresh_unix_time
        return result


class CheckResult(BaseModel):
    """Result of a single-type check (count / list / details metrics)."""

    package_details_list: list[UpdateRecord] = Field(default_factory=list)
    check_duration_seconds: float = 0.0
    last_apt_update_time: int = 0
    warning_threshold: int | None = None

    @property
    def available_updates(self) -> int:
        return len(self.package_details_list)

    @property
    def is_above_warning(self) -> bool:
        if self.warning_threshold is None:
            return False
        return self.available_updates > self.warning_threshold

    @property
    def names(self) -> list[str]:
        return [r.name for r in self.package_details_list]

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"available_updates": self.available_updates}
        if self.package_details_list:
            result["package_details_list"] = [
                r.to_dict() for r in self.package_details_list
            ]
        result["check_duration_seconds"] = self.check_duration_seconds
        result["last_apt_update_time"] = self.last_apt_update_time
        if self.warning_threshold is not None:
            result["warning_threshold"] = self.warning_threshold
            result["is_above_warning"] = self.is_above_warning
        return result

"""Core domain entities describing groups and their access annotations."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from grouphierarchy.exceptions import GroupHierarchyTooDeepError, GroupLoopError

GROUP_VERSION = 1


def now_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def _unique_ids(values: Iterable[str]) -> List[str]:
    cleaned = (value.strip() for value in values if value is not None)
    return list(dict.fromkeys(value for value in cleaned if value))


class GroupRecord(BaseModel):
    """A group and the short ids of the groups it is attached under.

    ``referring_groups`` is the only topology signal: it lists every ancestor
    the group considers itself attached under, across all hierarchies it takes
    part in. The record is never validated against other records here; cycles
    and orphan references only become meaningful relative to a traversal root,
    which is the job of :class:`~grouphierarchy.hierarchy.GroupCollection`.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, validate_assignment=True
    )

    id: str | None = Field(default=None, description="Persistence identity assigned by the store.")
    short_id: str = Field(..., min_length=1, description="Short unique id used in paths and references.")
    version: int = Field(default=GROUP_VERSION, ge=1)
    name: str = Field(default="")
    description: str = Field(default="")
    language: str = Field(default="en", min_length=2)
    active: bool = Field(default=True, description="False once the group has been logically deleted.")
    virtual: bool = Field(default=False, description="Group synthesised at read time, never stored.")
    creation_date_ms: int = Field(default_factory=now_ms, ge=0)
    creation_by: str | None = Field(default=None)
    modification_date_ms: int = Field(default=0, ge=0)
    deletion_date_ms: int = Field(default=0, ge=0)
    referring_groups: List[str] = Field(
        default_factory=list,
        description="Short ids of the groups this group is attached under.",
    )

    @field_validator("short_id")
    @classmethod
    def _strip_short_id(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("short_id must contain non-whitespace characters")
        return cleaned

    @field_validator("language")
    @classmethod
    def _normalize_language(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("referring_groups", mode="before")
    @classmethod
    def _normalize_referring_groups(cls, value: Iterable[str] | None) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            raise ValueError("referring_groups must be a list of short ids")
        return _unique_ids(value)

    def refers_to(self, short_id: str) -> bool:
        return short_id in self.referring_groups

    def clone(self) -> "GroupRecord":
        """Return a deep copy safe to hand to another hierarchy computation."""

        return self.model_copy(deep=True)

    def add_under_group(self, parent: "GroupRecord", max_depth: int) -> None:
        """Attach this group under ``parent``, inheriting its whole referring chain.

        Raises :class:`GroupLoopError` when ``parent`` is this group or already
        sits below it, and :class:`GroupHierarchyTooDeepError` when ``parent``
        is already ``max_depth`` levels deep.
        """

        if parent.short_id == self.short_id or parent.refers_to(self.short_id):
            raise GroupLoopError(
                f"group '{self.short_id}' cannot be attached under '{parent.short_id}'",
                code="group-loop-detected",
            )
        if len(parent.referring_groups) >= max_depth:
            raise GroupHierarchyTooDeepError(
                f"attaching '{self.short_id}' under '{parent.short_id}' exceeds max_depth={max_depth}",
                code="group-hierarchy-too-deep",
            )
        self.referring_groups = _unique_ids(
            [*self.referring_groups, *parent.referring_groups, parent.short_id]
        )
        self.modification_date_ms = now_ms()


class GroupAcl(BaseModel):
    """Per-user annotation of one group: local display name and granted roles."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    group: str = Field(..., min_length=1, description="Short id of the annotated group.")
    local_name: str | None = Field(default=None)
    roles: List[str] = Field(default_factory=list)

    @field_validator("roles", mode="before")
    @classmethod
    def _normalize_roles(cls, value: Iterable[str] | None) -> List[str]:
        if value is None:
            return []
        return _unique_ids(value)


__all__ = ["GROUP_VERSION", "GroupRecord", "GroupAcl", "now_ms"]

"""Group hierarchy policy models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class GroupHierarchyPolicy(BaseModel):
    """Limits applied when attaching groups and caching hierarchies."""

    max_depth: int = Field(
        default=16,
        ge=1,
        description="Maximum number of referring groups a parent may have when attaching under it.",
    )
    cache_max_size: int = Field(
        default=1000,
        ge=0,
        description="Number of hierarchies kept in the read-through cache; 0 disables caching.",
    )
    cache_expiration_seconds: int = Field(default=300, ge=1)

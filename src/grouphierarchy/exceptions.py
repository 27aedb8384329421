"""Error kinds raised while building and projecting group hierarchies."""

from __future__ import annotations


class GroupHierarchyError(Exception):
    """Base class carrying a stable machine-readable ``code``."""

    code = "group-hierarchy-error"

    def __init__(self, message: str | None = None, *, code: str | None = None) -> None:
        if code is not None:
            self.code = code
        super().__init__(message or self.code)


class GroupNotInHierarchyError(GroupHierarchyError, ValueError):
    """A candidate member does not refer to the collection head."""

    code = "group-not-in-hierarchy"

    def __init__(self, short_id: str, head: str) -> None:
        self.short_id = short_id
        self.head = head
        super().__init__(f"group '{short_id}' does not refer to hierarchy head '{head}'")


class GroupLoopError(GroupHierarchyError, ValueError):
    """Attaching a group would make it its own ancestor."""

    code = "group-loop-detected"


class GroupHierarchyTooDeepError(GroupHierarchyError, RuntimeError):
    """The depth bound was reached, either at attach time or while building."""

    code = "group-hierarchy-too-deep-possible-loop"


class InactiveGroupError(GroupHierarchyError):
    code = "groups-hierarchy-inactive-group"


class HierarchyUnavailableError(GroupHierarchyError, LookupError):
    """No usable hierarchy could be produced for the request."""

    code = "group-hierarchy-not-found"


__all__ = [
    "GroupHierarchyError",
    "GroupNotInHierarchyError",
    "GroupLoopError",
    "GroupHierarchyTooDeepError",
    "InactiveGroupError",
    "HierarchyUnavailableError",
]

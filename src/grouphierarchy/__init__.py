"""Top-level package for the group hierarchy engine."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("grouphierarchy")
except PackageNotFoundError:  # pragma: no cover - running from a source checkout
    __version__ = "0.1.0"

from .config.settings import Settings, get_settings
from .entities import GroupAcl, GroupRecord
from .exceptions import (
    GroupHierarchyError,
    GroupHierarchyTooDeepError,
    GroupLoopError,
    GroupNotInHierarchyError,
    HierarchyUnavailableError,
    InactiveGroupError,
)
from .hierarchy import (
    GroupCollection,
    GroupDirectory,
    HierarchyNode,
    HierarchyView,
    build_from_node,
    enrich_with_acls,
    view_from_record_set,
)

__all__ = [
    "__version__",
    "Settings",
    "get_settings",
    "GroupRecord",
    "GroupAcl",
    "GroupCollection",
    "GroupDirectory",
    "HierarchyNode",
    "HierarchyView",
    "build_from_node",
    "enrich_with_acls",
    "view_from_record_set",
    "GroupHierarchyError",
    "GroupNotInHierarchyError",
    "GroupLoopError",
    "GroupHierarchyTooDeepError",
    "InactiveGroupError",
    "HierarchyUnavailableError",
]

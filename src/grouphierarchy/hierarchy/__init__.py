"""Group hierarchy public API."""

from __future__ import annotations

from .collection import HIERARCHY_SAFETY_DEPTH, GroupCollection
from .directory import GroupDirectory
from .main import display_hierarchies
from .node import HierarchyNode
from .projection import HierarchyView, build_from_node, enrich_with_acls, view_from_record_set

__all__ = [
    "display_hierarchies",
    "GroupCollection",
    "GroupDirectory",
    "HIERARCHY_SAFETY_DEPTH",
    "HierarchyNode",
    "HierarchyView",
    "build_from_node",
    "enrich_with_acls",
    "view_from_record_set",
]

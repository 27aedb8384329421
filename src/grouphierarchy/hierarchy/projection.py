"""Client-safe projection of a hierarchy tree."""

from __future__ import annotations

from typing import List, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from grouphierarchy.entities.core import GroupAcl
from grouphierarchy.exceptions import (
    GroupHierarchyTooDeepError,
    HierarchyUnavailableError,
    InactiveGroupError,
)
from grouphierarchy.utils.logging import get_logger

from .collection import GroupCollection
from .node import HierarchyNode

_LOGGER = get_logger(module=__name__)


class HierarchyView(BaseModel):
    """Display view of one group and its active descendants."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    short_id: str
    name: str = ""
    description: str = ""
    children: List["HierarchyView"] = Field(default_factory=list)
    roles: List[str] = Field(
        default_factory=list,
        description="Roles the viewing user holds on this group, filled from ACLs.",
    )

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


HierarchyView.model_rebuild()


def build_from_node(node: HierarchyNode) -> HierarchyView:
    """Project ``node`` and its subtree, omitting inactive groups.

    An inactive ``node`` raises :class:`InactiveGroupError`; inactive
    descendants are skipped together with everything below them.
    """

    group = node.group
    if not group.active:
        raise InactiveGroupError(f"group '{group.short_id}' is inactive")
    view = HierarchyView(
        short_id=group.short_id,
        name=group.name,
        description=group.description,
    )
    for child in node.children:
        try:
            view.children.append(build_from_node(child))
        except InactiveGroupError:
            _LOGGER.debug("Skipping inactive subtree", short_id=child.short_id)
    return view


def view_from_record_set(collection: GroupCollection) -> HierarchyView:
    """Build the tree for ``collection`` and project it for display."""

    try:
        return build_from_node(collection.get_hierarchy())
    except (GroupHierarchyTooDeepError, InactiveGroupError) as exc:
        _LOGGER.warning(
            "Group hierarchy unavailable",
            head=collection.head,
            reason=exc.code,
        )
        raise HierarchyUnavailableError(str(exc), code=exc.code) from exc


def enrich_with_acls(view: HierarchyView, acls: Sequence[GroupAcl]) -> HierarchyView:
    """Attach ACL roles and local names to every node of ``view`` in place."""

    for acl in acls:
        if acl.group == view.short_id:
            view.roles = list(acl.roles)
            if acl.local_name:
                view.name = acl.local_name
            break
    for child in view.children:
        enrich_with_acls(child, acls)
    return view


__all__ = [
    "HierarchyView",
    "build_from_node",
    "view_from_record_set",
    "enrich_with_acls",
]

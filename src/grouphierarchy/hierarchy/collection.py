"""Topology engine turning flat referring-group sets into a layered tree."""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Sequence, Tuple

from grouphierarchy.entities.core import GroupRecord
from grouphierarchy.exceptions import GroupHierarchyTooDeepError, GroupNotInHierarchyError
from grouphierarchy.utils.logging import get_logger

from .node import HierarchyNode

_LOGGER = get_logger(module=__name__)

# Root counts as depth 1; the bound applies whatever max_depth the collection carries.
HIERARCHY_SAFETY_DEPTH = 10


class GroupCollection:
    """Working set of groups anchored at one head, able to lay them out as a tree.

    Instances are transient and not thread-safe: build one per computation
    (:meth:`clone` gives an independent copy) and never share it between
    concurrent callers.
    """

    def __init__(self, head_element: GroupRecord, max_depth: int) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be positive")
        self._head_element = head_element
        self._head = head_element.short_id
        self._members: List[GroupRecord] = [head_element]
        self._max_depth = max_depth

    # ------------------------------------------------------------------
    # Introspection helpers
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[GroupRecord]:
        return iter(self._members)

    def __contains__(self, short_id: object) -> bool:
        return any(group.short_id == short_id for group in self._members)

    @property
    def head(self) -> str:
        return self._head

    @property
    def head_element(self) -> GroupRecord:
        return self._head_element

    @property
    def max_depth(self) -> int:
        return self._max_depth

    @property
    def members(self) -> Tuple[GroupRecord, ...]:
        return tuple(self._members)

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------
    def add_element(self, group: GroupRecord) -> None:
        """Add a member; it must list the head among its referring groups."""

        if not group.refers_to(self._head):
            raise GroupNotInHierarchyError(group.short_id, self._head)
        self._members.append(group)
        _LOGGER.debug("Added group to hierarchy", head=self._head, short_id=group.short_id)

    def add_elements(self, groups: Iterable[GroupRecord]) -> List[GroupRecord]:
        """Add every candidate that belongs here and return the rejected ones."""

        rejected: List[GroupRecord] = []
        for group in groups:
            try:
                self.add_element(group)
            except GroupNotInHierarchyError:
                _LOGGER.warning(
                    "Group retrieved for hierarchy but not in hierarchy",
                    head=self._head,
                    short_id=group.short_id,
                )
                rejected.append(group)
        return rejected

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_under(self, short_id: str) -> List[GroupRecord]:
        """Every member attached anywhere below ``short_id``, at any depth."""

        return [group for group in self._members if group.refers_to(short_id)]

    def get_next_level(self, path: Sequence[str]) -> List[GroupRecord]:
        """Return the members sitting directly under the last entry of ``path``.

        ``path`` runs from the head down to and including the current node. A
        member is a candidate when every entry of ``path`` is among its
        referring groups. Candidates referring to nothing else are direct
        children. The others also refer to groups off the known path: they are
        dropped when they refer to a direct child (they belong deeper), and
        among what is left only the ones not referring to another leftover are
        kept, so each leftover chain contributes its top-most group.
        """

        known = set(path)
        size = len(path)

        direct: List[GroupRecord] = []
        deferred: List[GroupRecord] = []
        for group in self._members:
            refs = set(group.referring_groups)
            if len(refs & known) != size:
                continue
            if len(refs) == size:
                direct.append(group)
                _LOGGER.debug("Direct child", path=list(path), short_id=group.short_id)
            else:
                deferred.append(group)

        placed = {group.short_id for group in direct}
        candidates = [group for group in deferred if placed.isdisjoint(group.referring_groups)]

        candidate_ids = {group.short_id for group in candidates}
        residue_roots = [
            group for group in candidates if candidate_ids.isdisjoint(group.referring_groups)
        ]
        if residue_roots:
            _LOGGER.debug(
                "Retained ambiguous children",
                path=list(path),
                short_ids=[group.short_id for group in residue_roots],
            )
        return direct + residue_roots

    # ------------------------------------------------------------------
    # Tree construction
    # ------------------------------------------------------------------
    def build_hierarchy(self, node: HierarchyNode, depth: int, max_depth: int) -> HierarchyNode:
        """Grow the tree below ``node``, which sits at ``depth`` (head is 1).

        Layers are expanded breadth first and a group is placed only once per
        tree, at the first (shallowest) position found. When another branch
        reaches an already placed group, that branch is still followed below
        it: groups only reachable through it are attached under the existing
        node instead of being lost.
        """

        index: Dict[str, HierarchyNode] = {node.short_id: node}
        self._build_layer([(node, node.children_path())], depth, max_depth, index)
        return node

    def _build_layer(
        self,
        layer: List[Tuple[HierarchyNode, Tuple[str, ...]]],
        depth: int,
        max_depth: int,
        index: Dict[str, HierarchyNode],
    ) -> None:
        if depth >= max_depth:
            raise GroupHierarchyTooDeepError(
                f"hierarchy under '{self._head}' reached depth {depth} (limit {max_depth})"
            )
        next_layer: List[Tuple[HierarchyNode, Tuple[str, ...]]] = []
        for node, route in layer:
            for group in self.get_next_level(route):
                short_id = group.short_id
                if short_id in route:
                    continue
                existing = index.get(short_id)
                if existing is None:
                    existing = index[short_id] = node.add_child(group)
                else:
                    _LOGGER.debug(
                        "Group already placed, following alternate route",
                        head=self._head,
                        short_id=short_id,
                        route=list(route),
                    )
                next_layer.append((existing, (*route, short_id)))
        if next_layer:
            self._build_layer(next_layer, depth + 1, max_depth, index)

    def get_hierarchy(self) -> HierarchyNode:
        root = HierarchyNode(group=self._head_element)
        self.build_hierarchy(root, 1, HIERARCHY_SAFETY_DEPTH)
        _LOGGER.debug(
            "Built group hierarchy",
            head=self._head,
            members=len(self._members),
            placed=sum(1 for _ in root.walk()),
        )
        return root

    def to_json(self, *, indent: int | None = None) -> str:
        return self.get_hierarchy().to_json(indent=indent)

    def clone(self) -> "GroupCollection":
        copy = GroupCollection(self._head_element.clone(), self._max_depth)
        copy._members.extend(group.clone() for group in self._members[1:])
        return copy


__all__ = ["GroupCollection", "HIERARCHY_SAFETY_DEPTH"]

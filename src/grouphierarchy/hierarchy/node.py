"""Tree nodes produced by the hierarchy builder."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Tuple

from grouphierarchy.entities.core import GroupRecord


@dataclass(slots=True)
class HierarchyNode:
    """One group placed in a hierarchy, with the short ids of its ancestors.

    ``path`` starts at the hierarchy head and ends with the parent of this
    node; children always carry ``path + (short_id,)``.
    """

    group: GroupRecord
    path: Tuple[str, ...] = ()
    children: List["HierarchyNode"] = field(default_factory=list)

    @property
    def short_id(self) -> str:
        return self.group.short_id

    @property
    def depth(self) -> int:
        return len(self.path)

    def children_path(self) -> Tuple[str, ...]:
        """Path handed to the children of this node; includes this node."""

        return (*self.path, self.group.short_id)

    def add_child(self, group: GroupRecord) -> "HierarchyNode":
        child = HierarchyNode(group=group, path=self.children_path())
        self.children.append(child)
        return child

    def walk(self) -> Iterator["HierarchyNode"]:
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, short_id: str) -> "HierarchyNode | None":
        for node in self.walk():
            if node.short_id == short_id:
                return node
        return None

    def to_dict(self) -> Dict[str, object]:
        return {
            "group": self.group.model_dump(mode="json", by_alias=True),
            "path": list(self.path),
            "children": [child.to_dict() for child in self.children],
        }

    def to_json(self, *, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


__all__ = ["HierarchyNode"]

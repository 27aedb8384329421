"""I/O utilities for group hierarchies."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List, Sequence

from grouphierarchy.entities.core import GroupAcl, GroupRecord
from grouphierarchy.utils.helpers import serialize_json
from grouphierarchy.utils.logging import get_logger

from .node import HierarchyNode
from .projection import HierarchyView

_LOGGER = get_logger(module=__name__)


def _iter_json_lines(path: Path) -> Iterable[dict]:
    with path.open("r", encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError as exc:
                raise ValueError(f"{path}:{line_number}: invalid JSON line") from exc


def load_groups(input_paths: Sequence[str | Path]) -> List[GroupRecord]:
    """Read group records from one or more JSONL files."""

    groups: List[GroupRecord] = []
    for path_like in input_paths:
        path = Path(path_like)
        if not path.exists():
            raise FileNotFoundError(f"group file not found: {path}")
        groups.extend(GroupRecord.model_validate(payload) for payload in _iter_json_lines(path))
    _LOGGER.info(
        "Loaded group records",
        total=len(groups),
        files=[str(Path(p)) for p in input_paths],
    )
    return groups


def load_acls(input_path: str | Path) -> List[GroupAcl]:
    """Read ACL annotations from a JSON array or a JSONL file."""

    path = Path(input_path)
    if not path.exists():
        raise FileNotFoundError(f"acl file not found: {path}")
    text = path.read_text(encoding="utf-8").strip()
    if text.startswith("["):
        payloads = json.loads(text)
    else:
        payloads = list(_iter_json_lines(path))
    return [GroupAcl.model_validate(payload) for payload in payloads]


def write_views(views: Sequence[HierarchyView], output_path: str | Path) -> Path:
    path = serialize_json([view.to_payload() for view in views], output_path)
    _LOGGER.info("Wrote group hierarchies", path=str(path), heads=len(views))
    return path.resolve()


def export_hierarchy(node: HierarchyNode, output_path: str | Path) -> Path:
    """Write the unfiltered tree, inactive groups included, for diagnostics."""

    return serialize_json(node.to_dict(), output_path).resolve()


__all__ = ["load_groups", "load_acls", "write_views", "export_hierarchy"]

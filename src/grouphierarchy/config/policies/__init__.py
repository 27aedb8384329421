"""Policy models and their loader."""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping

import yaml
from pydantic import BaseModel, Field

from .groups import GroupHierarchyPolicy

POLICY_ENV_PREFIX = "GROUPHIERARCHY_POLICY__"


class Policies(BaseModel):
    """Every tunable limit, stamped with the version of the policy set."""

    policy_version: str = Field(default="2025-01-01", min_length=1)
    groups: GroupHierarchyPolicy = Field(default_factory=GroupHierarchyPolicy)


def _decode(value: str) -> Any:
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


def _set_path(target: Dict[str, Any], keys: List[str], value: Any) -> None:
    branch = target
    for depth, key in enumerate(keys[:-1], start=1):
        child = branch.setdefault(key, {})
        if not isinstance(child, dict):
            raise ValueError(
                f"policy override '{'.'.join(keys)}' crosses non-mapping value at '{'.'.join(keys[:depth])}'"
            )
        branch = child
    branch[keys[-1]] = value


def apply_policy_env(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay ``GROUPHIERARCHY_POLICY__GROUPS__MAX_DEPTH=8``-style variables.

    Values are JSON-decoded when they parse, so numbers and booleans keep
    their type; anything else stays a string.
    """

    for name, value in sorted(os.environ.items()):
        if not name.startswith(POLICY_ENV_PREFIX):
            continue
        keys = [part.lower() for part in name[len(POLICY_ENV_PREFIX) :].split("__") if part]
        if keys:
            _set_path(raw, keys, _decode(value))
    return raw


def _read_policy_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Policy file not found: {path}")
    loaded = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Policy file '{path}' must contain a mapping at the top level")
    return loaded


def load_policies(source: os.PathLike[str] | str | Mapping[str, Any]) -> Policies:
    """Build :class:`Policies` from a mapping or YAML file plus env overrides.

    A mapping source is deep-copied first and never modified.
    """

    if isinstance(source, Mapping):
        raw = copy.deepcopy(dict(source))
    else:
        raw = _read_policy_file(Path(source))
    return Policies.model_validate(apply_policy_env(raw))


__all__ = ["Policies", "GroupHierarchyPolicy", "load_policies", "apply_policy_env"]

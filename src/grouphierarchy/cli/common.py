"""State, override parsing and rendering helpers shared by the CLI commands."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

import typer
from rich.console import Console
from rich.tree import Tree

from grouphierarchy.config.settings import Settings
from grouphierarchy.hierarchy.projection import HierarchyView
from grouphierarchy.utils.logging import configure_logging

console = Console()


class CLIError(RuntimeError):
    """A problem worth showing to the user as a one-line message."""


@dataclass(slots=True)
class CLIState:
    """Per-invocation state stored on ``ctx.obj``."""

    settings: Settings
    environment: str
    verbose: bool = False
    overrides: Dict[str, Any] = field(default_factory=dict)


def parse_override(argument: str) -> Dict[str, Any]:
    """Turn ``policies.groups.max_depth=4`` into ``{"policies": {"groups": {"max_depth": 4}}}``.

    The value is JSON-decoded when possible and kept as a string otherwise.
    """

    dotted, sep, raw = argument.partition("=")
    keys: List[str] = [key.strip() for key in dotted.split(".") if key.strip()]
    if not sep:
        raise typer.BadParameter(f"expected dotted.key=value, got '{argument}'")
    if not keys:
        raise typer.BadParameter("override key is empty")
    try:
        value: Any = json.loads(raw)
    except json.JSONDecodeError:
        value = raw
    for key in reversed(keys):
        value = {key: value}
    return value


def _overlay(target: Dict[str, Any], extra: Mapping[str, Any]) -> Dict[str, Any]:
    for key, value in extra.items():
        existing = target.get(key)
        if isinstance(existing, dict) and isinstance(value, Mapping):
            _overlay(existing, value)
        else:
            target[key] = dict(value) if isinstance(value, Mapping) else value
    return target


def merge_overrides(overrides: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    for override in overrides:
        _overlay(merged, override)
    return merged


def configure_state(
    ctx: typer.Context,
    *,
    environment: str | None,
    overrides: Iterable[Mapping[str, Any]],
    verbose: bool,
) -> CLIState:
    """Build settings from overrides, set up logging and store the state on ``ctx``."""

    merged = merge_overrides(overrides)
    kwargs = dict(merged, environment=environment) if environment else dict(merged)
    try:
        settings = Settings(**kwargs)
    except ValueError as exc:
        raise CLIError(f"Invalid configuration: {exc}") from exc
    configure_logging(settings, level="DEBUG" if verbose else "WARNING", log_to_file=False)
    state = CLIState(
        settings=settings,
        environment=settings.environment,
        verbose=verbose,
        overrides=merged,
    )
    ctx.obj = state
    return state


def get_state(ctx: typer.Context) -> CLIState:
    if isinstance(ctx.obj, CLIState):
        return ctx.obj
    raise CLIError("CLI state missing; run commands through the grouphierarchy app")


def resolve_path(value: Path | str) -> Path:
    path = Path(value).expanduser()
    if not path.exists():
        raise CLIError(f"File not found: {path}")
    return path


def render_view(view: HierarchyView) -> Tree:
    """Render a projected hierarchy as a rich tree."""

    def _label(node: HierarchyView) -> str:
        label = f"[bold]{node.name or node.short_id}[/bold] [dim]({node.short_id})[/dim]"
        if node.roles:
            label += f" [cyan]{', '.join(node.roles)}[/cyan]"
        return label

    def _attach(branch: Tree, node: HierarchyView) -> None:
        for child in node.children:
            _attach(branch.add(_label(child)), child)

    tree = Tree(_label(view))
    _attach(tree, view)
    return tree


__all__ = [
    "CLIError",
    "CLIState",
    "configure_state",
    "console",
    "get_state",
    "merge_overrides",
    "parse_override",
    "render_view",
    "resolve_path",
]

"""Typer application exposing the ``grouphierarchy`` command."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import typer
from rich.table import Table

from grouphierarchy.exceptions import GroupHierarchyError
from grouphierarchy.hierarchy.directory import GroupDirectory
from grouphierarchy.hierarchy.io import load_acls, load_groups, write_views

from .common import CLIError, configure_state, console, get_state, parse_override, render_view, resolve_path

ErrorHandler = Callable[[BaseException], Any]


class GroupsTyper(typer.Typer):
    """Typer app that maps selected exception types to handlers when called."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._handlers: Dict[type, ErrorHandler] = {}

    def exception_handler(self, exception_type: type) -> Callable[[ErrorHandler], ErrorHandler]:
        def register(handler: ErrorHandler) -> ErrorHandler:
            self._handlers[exception_type] = handler
            return handler

        return register

    def handler_for(self, exception: BaseException) -> ErrorHandler | None:
        for klass in type(exception).__mro__:
            if klass in self._handlers:
                return self._handlers[klass]
        return None

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        try:
            return super().__call__(*args, **kwargs)
        except Exception as exc:  # pragma: no cover - exercised from the console script
            handler = self.handler_for(exc)
            if handler is None:
                raise
            outcome = handler(exc)
            if isinstance(outcome, typer.Exit) and kwargs.get("standalone_mode", True):
                raise SystemExit(outcome.exit_code) from exc
            if isinstance(outcome, BaseException):
                raise outcome from exc
            return outcome


app = GroupsTyper(
    name="grouphierarchy",
    help="Compute and inspect group hierarchies from flat group records.",
    add_completion=False,
    no_args_is_help=True,
)


@app.exception_handler(CLIError)
def _report_cli_error(exception: BaseException) -> typer.Exit:
    console.print(f"[bold red]error[/bold red] {exception}")
    return typer.Exit(code=2)


@app.callback()
def main(
    ctx: typer.Context,
    environment: Optional[str] = typer.Option(
        None,
        "--environment",
        "-e",
        show_default=False,
        help="Configuration environment: development, testing or production.",
    ),
    override: List[str] = typer.Option(  # noqa: B008
        [],
        "--override",
        "-o",
        metavar="KEY=VALUE",
        help="Override a setting, e.g. policies.groups.max_depth=8 (repeatable).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    """Load settings and logging before any subcommand runs."""

    configure_state(
        ctx,
        environment=environment,
        overrides=[parse_override(value) for value in override],
        verbose=verbose,
    )


def _load_directory(ctx: typer.Context, groups: List[Path]) -> GroupDirectory:
    state = get_state(ctx)
    paths = [resolve_path(path) for path in groups]
    try:
        records = load_groups(paths)
    except ValueError as exc:
        raise CLIError(str(exc)) from exc
    return GroupDirectory(state.settings.policies.groups, records)


@app.command("show")
def show_command(
    ctx: typer.Context,
    heads: List[str] = typer.Argument(..., help="Short ids of the hierarchy heads to display."),
    groups: List[Path] = typer.Option(
        ..., "--groups", "-g", help="Group record JSONL file (repeatable)."
    ),
    acls: Optional[Path] = typer.Option(None, "--acls", help="ACL annotations (JSON or JSONL)."),
    output: Optional[Path] = typer.Option(None, "--output", help="Write the hierarchies as JSON."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a tree."),
) -> None:
    """Display the active hierarchy below each head."""

    directory = _load_directory(ctx, groups)
    try:
        acl_records = load_acls(resolve_path(acls)) if acls else None
    except (OSError, ValueError) as exc:
        raise CLIError(str(exc)) from exc
    try:
        views = directory.get_groups_for_display(heads, acl_records)
    except GroupHierarchyError as exc:
        raise CLIError(f"{exc} ({exc.code})") from exc

    if output is not None:
        write_views(views, output)
        console.print(f"Wrote {len(views)} hierarchies to {output}")
    elif as_json:
        typer.echo(json.dumps([view.to_payload() for view in views], indent=2))
    else:
        for view in views:
            console.print(render_view(view))


@app.command("members")
def members_command(
    ctx: typer.Context,
    head: str = typer.Argument(..., help="Short id of the hierarchy head."),
    groups: List[Path] = typer.Option(
        ..., "--groups", "-g", help="Group record JSONL file (repeatable)."
    ),
    under: Optional[str] = typer.Option(
        None, "--under", help="List members below this group instead of the head."
    ),
) -> None:
    """List every member attached below a group, at any depth."""

    directory = _load_directory(ctx, groups)
    try:
        collection = directory.get_collection(head)
    except GroupHierarchyError as exc:
        raise CLIError(f"{exc} ({exc.code})") from exc

    table = Table(title=f"Groups under {under or head}")
    table.add_column("Short ID")
    table.add_column("Name")
    table.add_column("Active")
    table.add_column("Referring groups")
    for group in collection.get_under(under or head):
        table.add_row(
            group.short_id,
            group.name,
            "yes" if group.active else "no",
            ", ".join(group.referring_groups),
        )
    console.print(table)


__all__ = ["app"]

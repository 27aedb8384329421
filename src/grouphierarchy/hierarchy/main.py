"""Public entry points and CLI for displaying group hierarchies."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Sequence

from grouphierarchy.config.settings import Settings
from grouphierarchy.exceptions import GroupHierarchyError
from grouphierarchy.utils.logging import get_logger, log_timing, logging_context

from .directory import GroupDirectory
from .io import load_acls, load_groups, write_views
from .projection import HierarchyView

_LOGGER = get_logger(module=__name__)


def display_hierarchies(
    groups_paths: Sequence[str | Path],
    heads: Sequence[str],
    output_path: str | Path | None = None,
    *,
    settings: Settings | None = None,
    acl_path: str | Path | None = None,
) -> List[HierarchyView]:
    """Load group records and project the hierarchy below each head."""

    cfg = settings or Settings()
    directory = GroupDirectory(cfg.policies.groups, load_groups(groups_paths))
    acls = load_acls(acl_path) if acl_path else None

    with logging_context(step="group-hierarchy", run_id="-"), log_timing("display", heads=len(heads)):
        views = directory.get_groups_for_display(list(heads), acls)

    if output_path:
        write_views(views, output_path)
    _LOGGER.info("Group hierarchies computed", heads=list(heads), groups=len(directory))
    return views


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grouphierarchy-display",
        description="Compute display hierarchies from flat group records",
    )
    parser.add_argument("inputs", nargs="+", help="Group record JSONL files")
    parser.add_argument(
        "--head",
        dest="heads",
        action="append",
        required=True,
        help="Short id of a hierarchy head (repeatable)",
    )
    parser.add_argument("--output", help="Write the hierarchy JSON here instead of stdout")
    parser.add_argument("--acls", help="JSON or JSONL file of ACL annotations")
    parser.add_argument(
        "--environment",
        choices=["development", "testing", "production"],
        help="Configuration environment to load",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    cfg = Settings(environment=args.environment) if args.environment else Settings()

    try:
        views = display_hierarchies(
            args.inputs,
            args.heads,
            args.output,
            settings=cfg,
            acl_path=args.acls,
        )
    except GroupHierarchyError as exc:
        _LOGGER.error("Group hierarchy computation failed", error=str(exc), code=exc.code)
        return 1

    if not args.output:
        sys.stdout.write(json.dumps([view.to_payload() for view in views], indent=2) + "\n")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

"""Run the grouphierarchy CLI from a source checkout."""

from __future__ import annotations

import sys
from typing import Sequence

import typer

from grouphierarchy.cli.main import app


def main(argv: Sequence[str] | None = None) -> int:
    """Invoke the Typer app and translate its exit into a process status."""

    args = list(sys.argv[1:] if argv is None else argv)
    try:
        result = app(prog_name="grouphierarchy", args=args, standalone_mode=False)
    except typer.Exit as exc:  # pragma: no cover - handled CLI errors
        return exc.exit_code
    return result if isinstance(result, int) else 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

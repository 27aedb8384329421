"""Filesystem and JSON helpers for hierarchy exports."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .logging import get_logger

_LOGGER = get_logger(module=__name__)


def ensure_directory(path: Path | str) -> Path:
    """Create ``path`` (and parents) when missing; return it resolved."""

    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory.resolve()


def serialize_json(payload: Any, destination: Path | str, *, indent: int = 2) -> Path:
    """Write ``payload`` as sorted-key UTF-8 JSON terminated by a newline."""

    target = Path(destination)
    ensure_directory(target.parent)
    text = json.dumps(payload, indent=indent, sort_keys=True, ensure_ascii=False)
    target.write_text(text + "\n", encoding="utf-8")
    _LOGGER.debug("Wrote JSON document", path=str(target), bytes=len(text) + 1)
    return target


__all__ = ["ensure_directory", "serialize_json"]

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from .contracts import ErrorCode

logger = logging.getLogger(__name__)


class DataAccessError(Exception):
    pass


def resolve_under_root(*, root: Path, name: str) -> Path:
    """
    Resolve a plain file name under an explicit root directory.

    Rejects absolute paths and anything that would escape `root`.
    """

    if not name or name.startswith(("/", "\\")) or (":" in name and "\\" in name):
        raise DataAccessError(f"Expected a relative name under root, got: {name!r}")

    resolved_root = root.expanduser().resolve()
    candidate = (resolved_root / name).resolve()
    if not candidate.is_relative_to(resolved_root):
        raise DataAccessError(f"Path traversal or external reference detected: name={name!r}")
    return candidate


def remove_file_quietly(path: Path | None) -> dict[str, Any] | None:
    """
    Best-effort delete. Never raises; returns a CLEANUP_FAILED warning record on failure.
    """

    if path is None:
        return None
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Temp file cleanup failed for %s: %s", path.name, e)
        return {
            "code": ErrorCode.CLEANUP_FAILED.value,
            "message": "Temporary file could not be removed",
            "detail": {"file": path.name, "error": repr(e)},
        }
    return None

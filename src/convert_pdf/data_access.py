from __future__ import annotations

import logging
import re
import time
import uuid
from pathlib import Path
from typing import Any

from analyze_bbox.data_access import DataAccessError, remove_file_quietly, resolve_under_root

logger = logging.getLogger(__name__)

_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9_-]")


def sanitize_base_name(name: str) -> str:
    """
    Path-safe base name: every character outside [A-Za-z0-9_-] becomes "_".
    """
    return _UNSAFE_CHARS_RE.sub("_", name) or "file"


def _base_name(original_filename: str) -> str:
    name = original_filename.replace("\\", "/").split("/")[-1]
    stem, dot, _ = name.rpartition(".")
    return stem if dot and stem else name


class FileStore:
    """
    Filesystem capability for the service: staged uploads, intermediates and
    persisted outputs.

    Call `initialize()` once at startup. Output files are handed off to the
    serving layer under `public_prefix`; nothing here expires them.
    """

    def __init__(self, *, upload_dir: Path, converted_dir: Path, public_prefix: str = "/converted") -> None:
        if not isinstance(upload_dir, Path) or not isinstance(converted_dir, Path):
            raise TypeError("upload_dir and converted_dir must be pathlib.Path")
        self.upload_dir = upload_dir.expanduser().resolve()
        self.converted_dir = converted_dir.expanduser().resolve()
        self.public_prefix = "/" + public_prefix.strip("/")

    def initialize(self) -> None:
        for d in (self.upload_dir, self.converted_dir):
            d.mkdir(parents=True, exist_ok=True)
            if not d.is_dir():
                raise DataAccessError(f"Not a directory: {d}")
        logger.info("Upload dir: %s", self.upload_dir)
        logger.info("Converted dir: %s", self.converted_dir)

    def stage_upload(self, *, content: bytes, original_filename: str | None) -> Path:
        suffix = ""
        if original_filename and "." in original_filename:
            suffix = "." + sanitize_base_name(original_filename.rsplit(".", 1)[-1].lower())
        staged = self.upload_dir / f"{uuid.uuid4().hex}{suffix}"
        staged.write_bytes(content)
        return staged

    def output_name(self, *, original_filename: str, now_ms: int | None = None) -> str:
        ts = int(time.time() * 1000) if now_ms is None else int(now_ms)
        return f"{ts}_{sanitize_base_name(_base_name(original_filename))}.pdf"

    def converted_path(self, name: str) -> Path:
        return resolve_under_root(root=self.converted_dir, name=name)

    def baseline_path(self, name: str) -> Path:
        # Intermediates stay out of the served directory.
        return resolve_under_root(root=self.upload_dir, name=f"{name}.baseline.pdf")

    def public_path(self, name: str) -> str:
        return f"{self.public_prefix}/{name}"

    def discard(self, path: Path | None) -> dict[str, Any] | None:
        return remove_file_quietly(path)

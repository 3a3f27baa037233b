from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from analyze_bbox.contracts import ErrorCode
from analyze_bbox.engines.base import EngineError, Rasterizer
from analyze_bbox.engines.pypdfium2_boxes import backend_version, set_page_boxes
from contracts.bbox import BoundingBox

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NormalizeOutcome:
    """
    `error` is a hard failure (no usable output). `warnings` are soft failures
    of the optional page box pass; the cropped PDF is still delivered.
    """

    error: EngineError | None
    warnings: list[dict[str, Any]] = field(default_factory=list)
    page_box_pass: str = "skipped"  # "skipped" | "applied" | "failed"

    @property
    def ok(self) -> bool:
        return self.error is None


def normalize_to_bbox(
    *,
    rasterizer: Rasterizer,
    in_pdf: Path,
    out_pdf: Path,
    bbox: BoundingBox,
    timeout_s: float,
    enforce_page_boxes: bool = True,
) -> NormalizeOutcome:
    """
    Crop page 1 of `in_pdf` to `bbox` and write a single-page PDF to `out_pdf`.

    After this call every page box of `out_pdf` is [0 0 width height] and the
    box's lower-left corner sits at the origin. Content is translated, never scaled.
    Callers must reject degenerate boxes first.
    """

    if bbox.is_degenerate:
        raise ValueError(f"Refusing to crop to a zero-area box: {bbox}")

    err = rasterizer.crop(in_pdf=in_pdf, out_pdf=out_pdf, bbox=bbox, timeout_s=timeout_s)
    if err is not None:
        return NormalizeOutcome(error=err)

    if not enforce_page_boxes:
        return NormalizeOutcome(error=None)

    box_err = set_page_boxes(pdf_file=out_pdf, width_pt=bbox.width_pt, height_pt=bbox.height_pt)
    if box_err is not None:
        logger.warning("Page box pass failed for %s (keeping cropped PDF): %s", out_pdf.name, box_err.message)
        return NormalizeOutcome(
            error=None,
            warnings=[
                {
                    "code": ErrorCode.PAGE_BOX_PASS_FAILED.value,
                    "message": box_err.message,
                    "detail": {**(box_err.detail or {}), "backend_version": backend_version()},
                }
            ],
            page_box_pass="failed",
        )

    return NormalizeOutcome(error=None, page_box_pass="applied")

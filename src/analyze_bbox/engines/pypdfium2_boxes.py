from __future__ import annotations

import io
import logging
from pathlib import Path

from .base import PROCESS_FAILED, EngineError

logger = logging.getLogger(__name__)

PAGE_BOX_NAMES = ("mediabox", "cropbox", "bleedbox", "trimbox", "artbox")


def _require_pdfium():
    try:
        import pypdfium2 as pdfium  # type: ignore

        return pdfium
    except ImportError as e:
        raise RuntimeError(
            "Missing dependency: pypdfium2 is required for page box normalization."
        ) from e


def backend_version() -> str | None:
    try:
        import pypdfium2 as pdfium  # type: ignore

        return getattr(pdfium, "__version__", None)
    except Exception:
        return None


def set_page_boxes(*, pdf_file: Path, width_pt: float, height_pt: float) -> EngineError | None:
    """
    Force MediaBox/CropBox/BleedBox/TrimBox/ArtBox to [0 0 width height] on every page.

    The file is rewritten in place. Any failure is returned (not raised) so the
    caller can keep the already-cropped PDF.
    """

    try:
        pdfium = _require_pdfium()
        pdf = pdfium.PdfDocument(pdf_file.read_bytes())
        try:
            for index in range(len(pdf)):
                page = pdf[index]
                page.set_mediabox(0, 0, width_pt, height_pt)
                page.set_cropbox(0, 0, width_pt, height_pt)
                page.set_bleedbox(0, 0, width_pt, height_pt)
                page.set_trimbox(0, 0, width_pt, height_pt)
                page.set_artbox(0, 0, width_pt, height_pt)
            buffer = io.BytesIO()
            pdf.save(buffer)
        finally:
            pdf.close()
        pdf_file.write_bytes(buffer.getvalue())
    except Exception as e:
        return EngineError(
            code=PROCESS_FAILED,
            message="Failed to rewrite PDF page boxes",
            detail={"error": repr(e), "pdf_file": pdf_file.name},
        )

    logger.info("Page boxes set to [0 0 %s %s] for %s", width_pt, height_pt, pdf_file.name)
    return None


def read_page_boxes(*, pdf_file: Path, page_index: int = 0) -> dict[str, tuple[float, float, float, float]]:
    """
    Return the five page boxes of one page as {"mediabox": (l, b, r, t), ...}.

    Boxes missing from the page dictionary fall back per the PDF inheritance rules.
    """

    pdfium = _require_pdfium()
    pdf = pdfium.PdfDocument(pdf_file.read_bytes())
    try:
        page = pdf[page_index]
        return {
            name: tuple(float(v) for v in getattr(page, f"get_{name}")(fallback_ok=True))
            for name in PAGE_BOX_NAMES
        }
    finally:
        pdf.close()


def get_page_count(*, pdf_file: Path) -> int:
    pdfium = _require_pdfium()
    pdf = pdfium.PdfDocument(pdf_file.read_bytes())
    try:
        return len(pdf)
    finally:
        pdf.close()

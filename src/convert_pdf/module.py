from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from analyze_bbox.contracts import AnalyzeError, DocumentFormat, ErrorCode
from analyze_bbox.engines.base import MarkupConverter, Rasterizer
from analyze_bbox.engines.pypdfium2_boxes import get_page_count
from analyze_bbox.module import (
    apply_svg_dpi_correction,
    convert_to_baseline,
    degenerate_error,
    error_from_engine,
    get_markup_converter,
    get_rasterizer,
    probe_file,
    unsupported_format_error,
)
from contracts.bbox import BoundingBox

from .contracts import CONVERTIBLE_FORMATS, ConversionResult, ConvertConfig
from .data_access import FileStore
from .normalizer import normalize_to_bbox

logger = logging.getLogger(__name__)


def cropped_source(fmt: DocumentFormat, *, probe_source: str) -> str:
    return f"{probe_source or 'ghostscript'}_{fmt.value}_cropped"


def _failed(error: AnalyzeError, meta: dict[str, Any]) -> ConversionResult:
    return ConversionResult(ok=False, pdf_path=None, pdf_file_name=None, bbox=None, errors=[error], meta=meta)


def _warn(meta: dict[str, Any], warning: dict[str, Any] | None) -> None:
    if warning is not None:
        meta.setdefault("warnings", []).append(warning)


def _note_dropped_pages(pdf_file: Path, meta: dict[str, Any]) -> None:
    try:
        page_count = get_page_count(pdf_file=pdf_file)
    except Exception as e:
        logger.debug("Page count unavailable for %s: %r", pdf_file.name, e)
        return
    meta["source_page_count"] = page_count
    if page_count > 1:
        logger.warning("%s has %d pages; only page 1 is kept in the cropped PDF", pdf_file.name, page_count)


def _convert(
    *,
    config: ConvertConfig,
    store: FileStore,
    fmt: DocumentFormat,
    file: Path,
    out_name: str,
    rasterizer: Rasterizer,
    markup_converter: MarkupConverter,
    meta: dict[str, Any],
) -> tuple[BoundingBox | None, AnalyzeError | None]:
    analyze_config = config.analyze
    final_pdf = store.converted_path(out_name)
    baseline_pdf: Path | None = None

    try:
        if fmt == DocumentFormat.PDF:
            source_pdf = file
        else:
            baseline_pdf = store.baseline_path(out_name)
            err = convert_to_baseline(
                config=analyze_config,
                fmt=fmt,
                file=file,
                out_pdf=baseline_pdf,
                rasterizer=rasterizer,
                markup_converter=markup_converter,
            )
            if err is not None:
                return None, err
            source_pdf = baseline_pdf

        raw, err = probe_file(config=analyze_config, rasterizer=rasterizer, file=source_pdf)
        if raw is None:
            return None, err
        meta["raw_bbox"] = raw.to_dict()

        # The crop runs in the baseline's own point space; only the reported
        # box carries the SVG resolution correction.
        crop_bbox = raw.with_source(cropped_source(fmt, probe_source=raw.source))
        bbox = crop_bbox
        if fmt == DocumentFormat.SVG:
            bbox = apply_svg_dpi_correction(raw, svg_dpi=analyze_config.svg_dpi, source=crop_bbox.source)

        if crop_bbox.is_degenerate:
            return None, degenerate_error(bbox)

        _note_dropped_pages(source_pdf, meta)

        meta["crop_bbox"] = crop_bbox.to_dict()
        outcome = normalize_to_bbox(
            rasterizer=rasterizer,
            in_pdf=source_pdf,
            out_pdf=final_pdf,
            bbox=crop_bbox,
            timeout_s=analyze_config.timeout_s,
            enforce_page_boxes=config.enforce_page_boxes,
        )
        meta["page_box_pass"] = outcome.page_box_pass
        for warning in outcome.warnings:
            _warn(meta, warning)
        if outcome.error is not None:
            return None, error_from_engine(ErrorCode.CROP_FAILURE, "Cropping PDF to bounding box failed", outcome.error)

        return bbox, None
    finally:
        _warn(meta, store.discard(baseline_pdf))


def run_convert_to_pdf(
    *,
    config: ConvertConfig,
    store: FileStore,
    file: Path | None,
    original_filename: str | None,
    rasterizer: Rasterizer | None = None,
    markup_converter: MarkupConverter | None = None,
    now_ms: int | None = None,
) -> ConversionResult:
    """
    Convert entrypoint: SVG/AI/PDF -> single-page PDF cropped to its content box.

    The cropped PDF is persisted under `store.converted_dir`; on any failure no
    output file is left behind. The caller owns (and deletes) `file`.
    """

    meta: dict[str, Any] = {}

    if file is None or not file.exists():
        return _failed(AnalyzeError(code=ErrorCode.NO_FILE_PROVIDED.value, message="No file uploaded"), meta)

    fmt = DocumentFormat.from_filename(original_filename)
    if fmt is None or fmt not in CONVERTIBLE_FORMATS:
        err = unsupported_format_error(original_filename)
        return _failed(
            AnalyzeError(
                code=err.code,
                message=f"Conversion to PDF not implemented for {err.detail['extension'] or '(none)'}",
                detail=err.detail,
            ),
            meta,
        )

    rasterizer = rasterizer or get_rasterizer(config.analyze)
    markup_converter = markup_converter or get_markup_converter(config.analyze)
    meta["backend"] = rasterizer.backend_id()

    out_name = store.output_name(original_filename=original_filename or file.name, now_ms=now_ms)

    try:
        bbox, err = _convert(
            config=config,
            store=store,
            fmt=fmt,
            file=file,
            out_name=out_name,
            rasterizer=rasterizer,
            markup_converter=markup_converter,
            meta=meta,
        )
    except Exception as e:
        logger.exception("convert-to-pdf failed for %s", original_filename)
        _warn(meta, store.discard(store.converted_path(out_name)))
        return _failed(
            AnalyzeError(
                code=ErrorCode.CONVERT_INTERNAL_ERROR.value,
                message="Convert to PDF failed",
                detail={"error": repr(e)},
            ),
            meta,
        )

    if bbox is None:
        _warn(meta, store.discard(store.converted_path(out_name)))
        return _failed(err, meta)

    logger.info("Converted %s -> %s (%s)", original_filename, out_name, bbox)
    return ConversionResult(
        ok=True,
        pdf_path=store.public_path(out_name),
        pdf_file_name=out_name,
        bbox=bbox,
        errors=[],
        meta=meta,
    )

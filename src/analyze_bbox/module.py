from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from contracts.bbox import BoundingBox
from contracts.units import dpi_factor

from .contracts import AnalysisReport, AnalyzeConfig, AnalyzeError, DocumentFormat, ErrorCode
from .data_access import remove_file_quietly
from .engines.base import PARSE_FAILED, EngineError, MarkupConverter, Rasterizer
from .engines.ghostscript_cli import GhostscriptCliEngine
from .engines.rsvg_cli import RsvgConvertEngine
from .header import read_header_bbox

logger = logging.getLogger(__name__)

SVG_SOURCE = "svg_ghostscript_96dpi_fix"

# Formats handled by the analyze stage, and how each one is measured.
STRATEGY_HEADER_THEN_PROBE = "header_then_probe"
STRATEGY_PROBE = "probe"
STRATEGY_MARKUP_THEN_PROBE = "markup_then_probe"

ANALYZE_STRATEGIES: dict[DocumentFormat, str] = {
    DocumentFormat.EPS: STRATEGY_HEADER_THEN_PROBE,
    DocumentFormat.PS: STRATEGY_HEADER_THEN_PROBE,
    DocumentFormat.PDF: STRATEGY_PROBE,
    # Illustrator files are PDF-compatible containers.
    DocumentFormat.AI: STRATEGY_PROBE,
    DocumentFormat.SVG: STRATEGY_MARKUP_THEN_PROBE,
}


def get_rasterizer(config: AnalyzeConfig) -> Rasterizer:
    return GhostscriptCliEngine(binary=config.ghostscript_binary)


def get_markup_converter(config: AnalyzeConfig) -> MarkupConverter:
    return RsvgConvertEngine(binary=config.rsvg_binary)


def error_from_engine(code: ErrorCode, message: str, err: EngineError) -> AnalyzeError:
    detail: dict[str, Any] = {"engine_code": err.code, "engine_message": err.message}
    if err.detail:
        detail.update(err.detail)
    return AnalyzeError(code=code.value, message=message, detail=detail)


def unsupported_format_error(original_filename: str | None) -> AnalyzeError:
    name = original_filename or ""
    ext = "." + name.rsplit(".", 1)[-1].lower() if "." in name else ""
    return AnalyzeError(
        code=ErrorCode.UNSUPPORTED_FORMAT.value,
        message=f"Unsupported file type: {ext or '(none)'}",
        detail={"extension": ext},
    )


def degenerate_error(bbox: BoundingBox) -> AnalyzeError:
    return AnalyzeError(
        code=ErrorCode.DEGENERATE_BBOX.value,
        message="Content bounding box has zero area",
        detail={"llx": bbox.llx, "lly": bbox.lly, "urx": bbox.urx, "ury": bbox.ury},
    )


def probe_file(
    *, config: AnalyzeConfig, rasterizer: Rasterizer, file: Path
) -> tuple[BoundingBox | None, AnalyzeError | None]:
    """
    Render-probe `file`. Process and parse failures are both terminal for the caller.
    """

    result = rasterizer.probe_bbox(file=file, timeout_s=config.timeout_s)
    if result.ok:
        return result.bbox, None

    err = result.error or EngineError(code=PARSE_FAILED, message="Probe returned no bounding box")
    if err.code == PARSE_FAILED:
        return None, error_from_engine(ErrorCode.PROBE_PARSE_FAILURE, "Bounding box probe output could not be parsed", err)
    return None, error_from_engine(ErrorCode.PROBE_PROCESS_FAILURE, "Bounding box probe failed", err)


def convert_to_baseline(
    *,
    config: AnalyzeConfig,
    fmt: DocumentFormat,
    file: Path,
    out_pdf: Path,
    rasterizer: Rasterizer,
    markup_converter: MarkupConverter,
) -> AnalyzeError | None:
    """
    Materialize `file` as an uncropped, unit-uncorrected PDF at `out_pdf`.
    """

    if fmt == DocumentFormat.SVG:
        err = markup_converter.to_pdf(file=file, out_pdf=out_pdf, timeout_s=config.timeout_s)
        message = "SVG to PDF conversion failed"
    elif fmt in (DocumentFormat.AI, DocumentFormat.EPS, DocumentFormat.PS):
        err = rasterizer.to_pdf(file=file, out_pdf=out_pdf, timeout_s=config.timeout_s)
        message = f"{fmt.value.upper()} to PDF conversion failed"
    else:
        raise ValueError(f"No baseline conversion for format: {fmt.value}")

    if err is not None:
        return error_from_engine(ErrorCode.CONVERSION_FAILURE, message, err)
    return None


def apply_svg_dpi_correction(
    bbox: BoundingBox, *, svg_dpi: float, source: str | None = SVG_SOURCE
) -> BoundingBox:
    """
    Map a box probed on an SVG's converted PDF back to SVG user units.

    Must be applied after probing (the probe measures the converted file's
    own point space); every corner is scaled so width, height and mm follow.
    """

    return bbox.scaled(dpi_factor(svg_dpi), source=source)


def _failed(
    *,
    original_filename: str | None,
    fmt: DocumentFormat | None,
    error: AnalyzeError,
    meta: dict[str, Any],
) -> AnalysisReport:
    return AnalysisReport(
        ok=False,
        file_name=original_filename,
        format=fmt,
        bbox=None,
        errors=[error],
        meta=meta,
    )


def _measure(
    *,
    config: AnalyzeConfig,
    fmt: DocumentFormat,
    file: Path,
    rasterizer: Rasterizer,
    markup_converter: MarkupConverter,
    meta: dict[str, Any],
) -> tuple[BoundingBox | None, AnalyzeError | None]:
    strategy = ANALYZE_STRATEGIES[fmt]
    meta["strategy"] = strategy

    if strategy == STRATEGY_HEADER_THEN_PROBE:
        bbox = read_header_bbox(file)
        if bbox is not None:
            return bbox, None
        meta.setdefault("warnings", []).append(
            {
                "code": ErrorCode.HEADER_PARSE_MISS.value,
                "message": "No usable %%BoundingBox comment; using render probe",
            }
        )
        return probe_file(config=config, rasterizer=rasterizer, file=file)

    if strategy == STRATEGY_PROBE:
        return probe_file(config=config, rasterizer=rasterizer, file=file)

    baseline_pdf = file.with_name(file.name + ".tmp.pdf")
    try:
        err = convert_to_baseline(
            config=config,
            fmt=fmt,
            file=file,
            out_pdf=baseline_pdf,
            rasterizer=rasterizer,
            markup_converter=markup_converter,
        )
        if err is not None:
            return None, err
        raw, err = probe_file(config=config, rasterizer=rasterizer, file=baseline_pdf)
        if raw is None:
            return None, err
        meta["raw_bbox"] = raw.to_dict()
        return apply_svg_dpi_correction(raw, svg_dpi=config.svg_dpi), None
    finally:
        warning = remove_file_quietly(baseline_pdf)
        if warning is not None:
            meta.setdefault("warnings", []).append(warning)


def run_analyze_file(
    *,
    config: AnalyzeConfig,
    file: Path | None,
    original_filename: str | None,
    rasterizer: Rasterizer | None = None,
    markup_converter: MarkupConverter | None = None,
) -> AnalysisReport:
    """
    Analyze entrypoint: bounding box of the (first page of the) document at `file`.

    `original_filename` is used only for its extension (case-insensitive).
    The caller owns `file` and is responsible for deleting it.
    """

    meta: dict[str, Any] = {}

    if file is None or not file.exists():
        return _failed(
            original_filename=original_filename,
            fmt=None,
            error=AnalyzeError(code=ErrorCode.NO_FILE_PROVIDED.value, message="No file uploaded"),
            meta=meta,
        )

    fmt = DocumentFormat.from_filename(original_filename)
    if fmt is None or fmt not in ANALYZE_STRATEGIES:
        return _failed(
            original_filename=original_filename,
            fmt=None,
            error=unsupported_format_error(original_filename),
            meta=meta,
        )

    rasterizer = rasterizer or get_rasterizer(config)
    markup_converter = markup_converter or get_markup_converter(config)
    meta["backend"] = rasterizer.backend_id()

    try:
        bbox, err = _measure(
            config=config,
            fmt=fmt,
            file=file,
            rasterizer=rasterizer,
            markup_converter=markup_converter,
            meta=meta,
        )
    except Exception as e:
        logger.exception("Analyze failed for %s", original_filename)
        return _failed(
            original_filename=original_filename,
            fmt=fmt,
            error=AnalyzeError(
                code=ErrorCode.ANALYZE_INTERNAL_ERROR.value,
                message="Analyze failed",
                detail={"error": repr(e)},
            ),
            meta=meta,
        )

    if bbox is None:
        return _failed(original_filename=original_filename, fmt=fmt, error=err, meta=meta)
    if bbox.is_degenerate:
        return _failed(original_filename=original_filename, fmt=fmt, error=degenerate_error(bbox), meta=meta)

    logger.info("Analyzed %s (%s): %s", original_filename, fmt.value, bbox)
    return AnalysisReport(
        ok=True,
        file_name=original_filename,
        format=fmt,
        bbox=bbox,
        errors=[],
        meta=meta,
    )

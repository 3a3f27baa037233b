from __future__ import annotations

import logging
import re
import sys
from pathlib import Path

from contracts.bbox import BoundingBox

from .base import PARSE_FAILED, EngineError, ProbeResult, Rasterizer
from .process import command_template, require_output, run_tool

logger = logging.getLogger(__name__)

# Ghostscript ships a console binary with a platform-specific name.
GHOSTSCRIPT_BINARIES: dict[str, str] = {
    "win32": "gswin64c",
}
DEFAULT_GHOSTSCRIPT_BINARY = "gs"

# Only the high-resolution record is trusted; the integer %%BoundingBox line
# the bbox device also prints is rounded outward to whole points.
_HIRES_BBOX_RE = re.compile(
    r"%%HiResBoundingBox:\s*([-\d.]+)\s+([-\d.]+)\s+([-\d.]+)\s+([-\d.]+)"
)

_SAFE_BATCH_FLAGS = ["-dSAFER", "-dNOPAUSE", "-dBATCH"]

BOX_NAMES = ("MediaBox", "CropBox", "BleedBox", "TrimBox", "ArtBox")


def resolve_ghostscript_binary(platform: str | None = None) -> str:
    return GHOSTSCRIPT_BINARIES.get(platform or sys.platform, DEFAULT_GHOSTSCRIPT_BINARY)


def format_pt(value: float) -> str:
    """
    Compact, locale-independent decimal for PostScript operands.
    """
    s = f"{value:.4f}".rstrip("0").rstrip(".")
    return "0" if s in ("", "-0") else s


def parse_hires_bbox(diagnostics: str, *, source: str = "ghostscript") -> BoundingBox | None:
    """
    Return the first %%HiResBoundingBox record in `diagnostics`, or None.

    Raises ValueError when the record is inverted (urx < llx or ury < lly).
    """

    m = _HIRES_BBOX_RE.search(diagnostics)
    if not m:
        return None
    try:
        llx, lly, urx, ury = (float(g) for g in m.groups())
    except ValueError:
        return None
    return BoundingBox(llx=llx, lly=lly, urx=urx, ury=ury, source=source)


def build_page_device_directive(bbox: BoundingBox) -> str:
    w = format_pt(bbox.width_pt)
    h = format_pt(bbox.height_pt)
    boxes = " ".join(f"/{name} [0 0 {w} {h}]" for name in BOX_NAMES)
    offset = f"[{format_pt(-bbox.llx)} {format_pt(-bbox.lly)}]"
    return f"<</PageSize [{w} {h}] {boxes} /PageOffset {offset}>> setpagedevice"


class GhostscriptCliEngine(Rasterizer):
    """
    Ghostscript via its CLI.

    - probe: `bbox` device, record parsed from stderr (stdout carries nothing useful)
    - to_pdf: `pdfwrite` device, no box adjustments
    - crop: `pdfwrite` with a page-device directive (translation only, no zoom)
    """

    def __init__(self, binary: str | None = None) -> None:
        self.binary = binary or resolve_ghostscript_binary()

    def backend_id(self) -> str:
        return "ghostscript"

    def probe_command(self, file: Path) -> list[str]:
        return [self.binary, *_SAFE_BATCH_FLAGS, "-sDEVICE=bbox", str(file)]

    def to_pdf_command(self, file: Path, out_pdf: Path) -> list[str]:
        return [
            self.binary,
            *_SAFE_BATCH_FLAGS,
            "-sDEVICE=pdfwrite",
            f"-sOutputFile={out_pdf}",
            str(file),
        ]

    def crop_command(self, in_pdf: Path, out_pdf: Path, bbox: BoundingBox) -> list[str]:
        return [
            self.binary,
            *_SAFE_BATCH_FLAGS,
            "-sDEVICE=pdfwrite",
            f"-dDEVICEWIDTHPOINTS={format_pt(bbox.width_pt)}",
            f"-dDEVICEHEIGHTPOINTS={format_pt(bbox.height_pt)}",
            "-dFIXEDMEDIA",
            "-dFirstPage=1",
            "-dLastPage=1",
            f"-sOutputFile={out_pdf}",
            "-c",
            build_page_device_directive(bbox),
            "-f",
            str(in_pdf),
        ]

    def probe_bbox(self, *, file: Path, timeout_s: float) -> ProbeResult:
        proc, err = run_tool(self.probe_command(file), timeout_s=timeout_s)
        if err is not None:
            return ProbeResult(bbox=None, error=err)

        stderr = proc.stderr or ""
        try:
            bbox = parse_hires_bbox(stderr, source=self.backend_id())
        except ValueError as e:
            logger.error("Inverted HiResBoundingBox for %s: %s", file.name, e)
            return ProbeResult(
                bbox=None,
                error=EngineError(code=PARSE_FAILED, message=str(e), detail={"stderr": stderr[-4000:]}),
            )

        if bbox is None:
            logger.error("No HiResBoundingBox in Ghostscript output for %s", file.name)
            return ProbeResult(
                bbox=None,
                error=EngineError(
                    code=PARSE_FAILED,
                    message="No HiResBoundingBox found in Ghostscript output",
                    detail={"stderr": stderr[-4000:]},
                ),
            )

        logger.debug("Ghostscript bbox for %s: %s", file.name, bbox)
        return ProbeResult(bbox=bbox)

    def to_pdf(self, *, file: Path, out_pdf: Path, timeout_s: float) -> EngineError | None:
        _, err = run_tool(self.to_pdf_command(file, out_pdf), timeout_s=timeout_s)
        if err is not None:
            return err
        return require_output(out_pdf, binary=self.binary)

    def crop(
        self,
        *,
        in_pdf: Path,
        out_pdf: Path,
        bbox: BoundingBox,
        timeout_s: float,
    ) -> EngineError | None:
        cmd = self.crop_command(in_pdf, out_pdf, bbox)
        logger.info(
            "Cropping to %sx%spt offset (%s, %s): %s",
            format_pt(bbox.width_pt),
            format_pt(bbox.height_pt),
            format_pt(-bbox.llx),
            format_pt(-bbox.lly),
            command_template(cmd, {"<IN_PDF>": in_pdf, "<OUT_PDF>": out_pdf}),
        )
        _, err = run_tool(cmd, timeout_s=timeout_s)
        if err is not None:
            return err
        return require_output(out_pdf, binary=self.binary)

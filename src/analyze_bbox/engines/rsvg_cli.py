from __future__ import annotations

from pathlib import Path

from .base import EngineError, MarkupConverter
from .process import require_output, run_tool


class RsvgConvertEngine(MarkupConverter):
    """
    SVG -> PDF via the librsvg `rsvg-convert` CLI.

    SVG user units are 96 per inch while the output PDF is measured in
    points (72 per inch); analyzed SVG boxes are rescaled afterwards.
    """

    def __init__(self, binary: str = "rsvg-convert") -> None:
        self.binary = binary

    def backend_id(self) -> str:
        return "rsvg-convert"

    def to_pdf_command(self, file: Path, out_pdf: Path) -> list[str]:
        return [self.binary, "-f", "pdf", "-o", str(out_pdf), str(file)]

    def to_pdf(self, *, file: Path, out_pdf: Path, timeout_s: float) -> EngineError | None:
        _, err = run_tool(self.to_pdf_command(file, out_pdf), timeout_s=timeout_s)
        if err is not None:
            return err
        return require_output(out_pdf, binary=self.binary)

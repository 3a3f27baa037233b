"""
Analyze stage - content bounding box of print-ready documents.

Per-format strategy (by lowercase file extension):
- .eps/.ps: %%BoundingBox header comment, else render probe
- .pdf/.ai: render probe (Ghostscript bbox device, page 1)
- .svg: SVG -> baseline PDF -> render probe -> 96/72 dpi correction

This package measures only. It never crops or rewrites documents and it
does not own the uploaded file (the caller deletes it).
"""

from .contracts import (
    AnalysisReport,
    AnalyzeConfig,
    AnalyzeError,
    DocumentFormat,
    ErrorCode,
)
from .module import apply_svg_dpi_correction, run_analyze_file

__all__ = [
    "AnalysisReport",
    "AnalyzeConfig",
    "AnalyzeError",
    "DocumentFormat",
    "ErrorCode",
    "apply_svg_dpi_correction",
    "run_analyze_file",
]

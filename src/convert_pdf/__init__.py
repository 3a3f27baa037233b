"""
Convert stage - SVG/AI/PDF -> canonical PDF cropped to the content box.

Pipeline: convert-if-needed -> probe -> (svg) dpi correction -> crop/normalize
page boxes -> persist under the FileStore's converted directory.

Only page 1 of multi-page inputs is kept. Failures leave no output file.
"""

from .contracts import ConversionResult, ConvertConfig
from .data_access import FileStore, sanitize_base_name
from .module import run_convert_to_pdf
from .normalizer import NormalizeOutcome, normalize_to_bbox

__all__ = [
    "ConversionResult",
    "ConvertConfig",
    "FileStore",
    "NormalizeOutcome",
    "normalize_to_bbox",
    "run_convert_to_pdf",
    "sanitize_base_name",
]

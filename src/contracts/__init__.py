"""
Shared value types for the bounding-box pipeline.

These models are the schema boundary between the analyze and convert stages
and the HTTP surface. Stage code should consume/produce these objects
(not ad-hoc dicts) and serialize them only at the edges.
"""

from .bbox import BoundingBox
from .units import (
    MM_PER_INCH,
    POINTS_PER_INCH,
    SVG_NOMINAL_DPI,
    dpi_factor,
    mm_from_pt,
    pt_from_mm,
    round_mm,
)

__all__ = [
    "BoundingBox",
    "MM_PER_INCH",
    "POINTS_PER_INCH",
    "SVG_NOMINAL_DPI",
    "dpi_factor",
    "mm_from_pt",
    "pt_from_mm",
    "round_mm",
]

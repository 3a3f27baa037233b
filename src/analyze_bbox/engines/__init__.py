"""
External tool engines for the analyze and convert stages.

Stage modules depend on the `Rasterizer` / `MarkupConverter` interfaces so
probe/convert/crop logic can run against fakes without real binaries.
"""

from .base import EngineError, MarkupConverter, ProbeResult, Rasterizer
from .ghostscript_cli import GhostscriptCliEngine, parse_hires_bbox, resolve_ghostscript_binary
from .rsvg_cli import RsvgConvertEngine

__all__ = [
    "EngineError",
    "GhostscriptCliEngine",
    "MarkupConverter",
    "ProbeResult",
    "Rasterizer",
    "RsvgConvertEngine",
    "parse_hires_bbox",
    "resolve_ghostscript_binary",
]

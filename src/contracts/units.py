from __future__ import annotations

POINTS_PER_INCH = 72.0
MM_PER_INCH = 25.4

# SVG user units are CSS pixels (96 per inch); PDF user space is points (72 per inch).
SVG_NOMINAL_DPI = 96.0


def mm_from_pt(pt: float) -> float:
    return pt * MM_PER_INCH / POINTS_PER_INCH


def pt_from_mm(mm: float) -> float:
    return mm * POINTS_PER_INCH / MM_PER_INCH


def round_mm(mm: float) -> float:
    """
    Millimeter values are reported with 2 decimals (0.01 mm resolution).
    """
    return round(mm, 2)


def dpi_factor(source_dpi: float, target_dpi: float = POINTS_PER_INCH) -> float:
    """
    Multiplier mapping a length measured at `target_dpi` back to the nominal
    resolution of a source document authored at `source_dpi`.

    e.g. SVG (96 dpi) probed as PDF (72 dpi): dpi_factor(96) == 4/3
    """

    if source_dpi <= 0 or target_dpi <= 0:
        raise ValueError("dpi values must be positive")
    return source_dpi / target_dpi

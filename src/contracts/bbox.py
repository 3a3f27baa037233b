from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .units import mm_from_pt, round_mm


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """
    Content bounding box in PDF user space (points, origin lower-left):
    - (llx, lly) is the lower-left corner
    - (urx, ury) is the upper-right corner

    `source` identifies the strategy that produced the box
    (e.g. "eps_header", "ghostscript", "ghostscript_pdf_cropped").
    """

    llx: float
    lly: float
    urx: float
    ury: float
    source: str

    def __post_init__(self) -> None:
        if self.urx < self.llx or self.ury < self.lly:
            raise ValueError(
                f"Inverted bounding box: ({self.llx}, {self.lly}, {self.urx}, {self.ury})"
            )

    @property
    def width_pt(self) -> float:
        return self.urx - self.llx

    @property
    def height_pt(self) -> float:
        return self.ury - self.lly

    @property
    def width_mm(self) -> float:
        return round_mm(mm_from_pt(self.width_pt))

    @property
    def height_mm(self) -> float:
        return round_mm(mm_from_pt(self.height_pt))

    @property
    def is_degenerate(self) -> bool:
        return self.width_pt <= 0 or self.height_pt <= 0

    def scaled(self, factor: float, *, source: str | None = None) -> "BoundingBox":
        if factor <= 0:
            raise ValueError("scale factor must be positive")
        return BoundingBox(
            llx=self.llx * factor,
            lly=self.lly * factor,
            urx=self.urx * factor,
            ury=self.ury * factor,
            source=self.source if source is None else source,
        )

    def with_source(self, source: str) -> "BoundingBox":
        return BoundingBox(llx=self.llx, lly=self.lly, urx=self.urx, ury=self.ury, source=source)

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "BoundingBox":
        return BoundingBox(
            llx=float(d["llx"]),
            lly=float(d["lly"]),
            urx=float(d["urx"]),
            ury=float(d["ury"]),
            source=str(d.get("source", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "llx": self.llx,
            "lly": self.lly,
            "urx": self.urx,
            "ury": self.ury,
            "widthPt": self.width_pt,
            "heightPt": self.height_pt,
            "width_mm": self.width_mm,
            "height_mm": self.height_mm,
            "source": self.source,
        }

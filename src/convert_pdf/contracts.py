from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from analyze_bbox.contracts import AnalyzeConfig, AnalyzeError, DocumentFormat, ErrorCode
from contracts.bbox import BoundingBox

CONVERTIBLE_FORMATS = frozenset({DocumentFormat.SVG, DocumentFormat.AI, DocumentFormat.PDF})


@dataclass(frozen=True, slots=True)
class ConvertConfig:
    """
    Convert stage configuration.

    `enforce_page_boxes` toggles the second, in-place page box pass that runs
    after the Ghostscript crop. It is optional: the crop already sets all boxes.
    """

    analyze: AnalyzeConfig = field(default_factory=AnalyzeConfig)
    enforce_page_boxes: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.analyze, AnalyzeConfig):
            raise TypeError("analyze must be an AnalyzeConfig")


@dataclass(frozen=True, slots=True)
class ConversionResult:
    ok: bool
    pdf_path: str | None  # public URL path of the persisted artifact, e.g. /converted/<name>
    pdf_file_name: str | None
    bbox: BoundingBox | None
    errors: list[AnalyzeError]
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def error(self) -> AnalyzeError | None:
        return self.errors[0] if self.errors else None

    def to_dict(self) -> dict[str, Any]:
        if not self.ok or self.bbox is None:
            err = self.error
            return {
                "ok": False,
                "error": err.message if err else "Convert to PDF failed",
                "code": err.code if err else ErrorCode.CONVERT_INTERNAL_ERROR.value,
                "detail": err.detail if err else None,
            }
        payload: dict[str, Any] = {
            "ok": True,
            "pdfPath": self.pdf_path,
            "pdfFileName": self.pdf_file_name,
            "format": DocumentFormat.PDF.value,
        }
        payload.update(self.bbox.to_dict())
        return payload

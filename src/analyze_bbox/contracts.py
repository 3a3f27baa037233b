from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from contracts.bbox import BoundingBox
from contracts.units import SVG_NOMINAL_DPI


class DocumentFormat(str, Enum):
    EPS = "eps"
    PS = "ps"
    PDF = "pdf"
    AI = "ai"
    SVG = "svg"

    @classmethod
    def from_filename(cls, filename: str | None) -> "DocumentFormat | None":
        """
        Case-insensitive lookup by file extension; None for unknown extensions.
        """
        name = (filename or "").replace("\\", "/").split("/")[-1]
        if "." not in name.strip("."):
            return None
        ext = name.rsplit(".", 1)[-1].lower()
        try:
            return cls(ext)
        except ValueError:
            return None


class ErrorCode(str, Enum):
    NO_FILE_PROVIDED = "NO_FILE_PROVIDED"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    HEADER_PARSE_MISS = "HEADER_PARSE_MISS"
    PROBE_PROCESS_FAILURE = "PROBE_PROCESS_FAILURE"
    PROBE_PARSE_FAILURE = "PROBE_PARSE_FAILURE"
    DEGENERATE_BBOX = "DEGENERATE_BBOX"
    CONVERSION_FAILURE = "CONVERSION_FAILURE"
    CROP_FAILURE = "CROP_FAILURE"
    PAGE_BOX_PASS_FAILED = "PAGE_BOX_PASS_FAILED"
    CLEANUP_FAILED = "CLEANUP_FAILED"
    ANALYZE_INTERNAL_ERROR = "ANALYZE_INTERNAL_ERROR"
    CONVERT_INTERNAL_ERROR = "CONVERT_INTERNAL_ERROR"


# Codes the caller can fix by sending a different request.
CLIENT_ERROR_CODES = frozenset(
    {
        ErrorCode.NO_FILE_PROVIDED.value,
        ErrorCode.UNSUPPORTED_FORMAT.value,
        ErrorCode.FILE_TOO_LARGE.value,
    }
)


@dataclass(frozen=True, slots=True)
class AnalyzeError:
    code: str
    message: str
    detail: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "detail": self.detail}


@dataclass(frozen=True, slots=True)
class AnalyzeConfig:
    """
    Analyze stage configuration.

    Passed explicitly by the caller; no environment variable reads in this
    package. `ghostscript_binary=None` resolves the platform default once.
    """

    timeout_s: float = 120.0
    svg_dpi: float = SVG_NOMINAL_DPI
    ghostscript_binary: str | None = None
    rsvg_binary: str = "rsvg-convert"

    def __post_init__(self) -> None:
        if self.timeout_s <= 0:
            raise ValueError("timeout_s must be positive")
        if self.svg_dpi <= 0:
            raise ValueError("svg_dpi must be positive")


@dataclass(frozen=True, slots=True)
class AnalysisReport:
    ok: bool
    file_name: str | None
    format: DocumentFormat | None
    bbox: BoundingBox | None
    errors: list[AnalyzeError]
    meta: dict[str, Any] = field(default_factory=dict)
    # First-page / flattened semantics: multi-page inputs report page 1 only.
    page_count: int = 1

    @property
    def error(self) -> AnalyzeError | None:
        return self.errors[0] if self.errors else None

    def to_dict(self) -> dict[str, Any]:
        if not self.ok or self.bbox is None:
            err = self.error
            return {
                "error": err.message if err else "Analyze failed",
                "code": err.code if err else ErrorCode.ANALYZE_INTERNAL_ERROR.value,
                "detail": err.detail if err else None,
            }
        payload: dict[str, Any] = {
            "fileName": self.file_name,
            "format": self.format.value if self.format else None,
            "pageCount": self.page_count,
        }
        payload.update(self.bbox.to_dict())
        return payload

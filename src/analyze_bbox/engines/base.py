from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from contracts.bbox import BoundingBox


# Engine-level failure codes; stage modules map these onto their own taxonomy.
BACKEND_NOT_INSTALLED = "BACKEND_NOT_INSTALLED"
PROCESS_TIMEOUT = "PROCESS_TIMEOUT"
PROCESS_FAILED = "PROCESS_FAILED"
PARSE_FAILED = "PARSE_FAILED"


@dataclass(frozen=True, slots=True)
class EngineError:
    code: str
    message: str
    detail: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class ProbeResult:
    bbox: BoundingBox | None
    error: EngineError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.bbox is not None


class Rasterizer(ABC):
    """
    External rasterizer abstraction (bbox probe, PDF writer, page-device crop).

    Engines must:
    - Never rescale content (crop is a translation plus page geometry only)
    - Report failures as EngineError values instead of raising
    """

    @abstractmethod
    def backend_id(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def probe_bbox(self, *, file: Path, timeout_s: float) -> ProbeResult:
        raise NotImplementedError

    @abstractmethod
    def to_pdf(self, *, file: Path, out_pdf: Path, timeout_s: float) -> EngineError | None:
        """
        Write `file` as a baseline PDF: no cropping, no box adjustments.
        """

        raise NotImplementedError

    @abstractmethod
    def crop(
        self,
        *,
        in_pdf: Path,
        out_pdf: Path,
        bbox: BoundingBox,
        timeout_s: float,
    ) -> EngineError | None:
        """
        Write page 1 of `in_pdf` with all five page boxes set to
        [0 0 width height] and content translated by (-llx, -lly).
        """

        raise NotImplementedError


class MarkupConverter(ABC):
    """
    Vector markup (SVG) -> baseline PDF converter.
    """

    @abstractmethod
    def backend_id(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def to_pdf(self, *, file: Path, out_pdf: Path, timeout_s: float) -> EngineError | None:
        raise NotImplementedError

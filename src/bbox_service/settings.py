"""
Service configuration using Pydantic Settings.

Environment variables (prefix BBOX_, or a .env file):
- BBOX_UPLOAD_DIR / BBOX_CONVERTED_DIR: staging and output directories
- BBOX_PORT / BBOX_HOST: listen address
- BBOX_MAX_UPLOAD_MB: upload size limit
- BBOX_PROCESS_TIMEOUT_S: hard timeout per external tool call
- BBOX_GHOSTSCRIPT_BINARY / BBOX_RSVG_BINARY: tool overrides
"""
from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from analyze_bbox.contracts import AnalyzeConfig
from convert_pdf.contracts import ConvertConfig
from convert_pdf.data_access import FileStore


class Settings(BaseSettings):
    """Service settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="BBOX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    upload_dir: Path = Field(default=Path("uploads"))
    converted_dir: Path = Field(default=Path("converted"))
    public_prefix: str = Field(default="/converted")

    # API
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    max_upload_mb: int = Field(default=100, description="Uploads larger than this are rejected.")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: str = Field(default="INFO")

    # External tools
    process_timeout_s: float = Field(default=120.0, gt=0)
    ghostscript_binary: str | None = Field(default=None)
    rsvg_binary: str = Field(default="rsvg-convert")

    # Geometry
    svg_dpi: float = Field(default=96.0, gt=0)
    enforce_page_boxes: bool = Field(
        default=True,
        description="Run the in-place page box pass after the Ghostscript crop.",
    )

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    def analyze_config(self) -> AnalyzeConfig:
        return AnalyzeConfig(
            timeout_s=self.process_timeout_s,
            svg_dpi=self.svg_dpi,
            ghostscript_binary=self.ghostscript_binary,
            rsvg_binary=self.rsvg_binary,
        )

    def convert_config(self) -> ConvertConfig:
        return ConvertConfig(analyze=self.analyze_config(), enforce_page_boxes=self.enforce_page_boxes)

    def file_store(self) -> FileStore:
        return FileStore(
            upload_dir=self.upload_dir,
            converted_dir=self.converted_dir,
            public_prefix=self.public_prefix,
        )

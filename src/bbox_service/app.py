"""
HTTP surface for the analyze and convert stages.

Provides endpoints for:
- POST /analyze: bounding box report for EPS/PS/PDF/AI/SVG uploads
- POST /convert-to-pdf: SVG/AI/PDF -> cropped PDF served under /converted
- GET /: healthcheck
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from fastapi import FastAPI, File, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from analyze_bbox.contracts import CLIENT_ERROR_CODES, AnalyzeError, ErrorCode
from analyze_bbox.engines.base import MarkupConverter, Rasterizer
from analyze_bbox.module import run_analyze_file
from convert_pdf.module import run_convert_to_pdf

from .settings import Settings

logger = logging.getLogger(__name__)

SERVICE_NAME = "bbox-service"

# Client errors map to 400 unless listed here; everything else is a 500.
STATUS_BY_CODE = {
    ErrorCode.FILE_TOO_LARGE.value: 413,
}


def status_for(error: AnalyzeError | None) -> int:
    if error is None:
        return 500
    if error.code in CLIENT_ERROR_CODES:
        return STATUS_BY_CODE.get(error.code, 400)
    return 500


def create_app(
    settings: Settings | None = None,
    *,
    rasterizer: Rasterizer | None = None,
    markup_converter: MarkupConverter | None = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        settings: Service settings (defaults to environment-loaded Settings)
        rasterizer: Optional Rasterizer override (tests inject fakes here)
        markup_converter: Optional MarkupConverter override

    Returns:
        Configured FastAPI application with directories initialized
    """
    settings = settings or Settings()
    store = settings.file_store()
    store.initialize()
    analyze_config = settings.analyze_config()
    convert_config = settings.convert_config()

    app = FastAPI(
        title="Print Bounding Box API",
        description="Content bounding box analysis and crop-to-content PDF conversion",
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.mount(store.public_prefix, StaticFiles(directory=str(store.converted_dir)), name="converted")

    def stage(file: UploadFile | None) -> tuple[Path | None, AnalyzeError | None]:
        if file is None or not file.filename:
            return None, AnalyzeError(code=ErrorCode.NO_FILE_PROVIDED.value, message="No file uploaded")

        limit = settings.max_upload_bytes
        content = file.file.read(limit + 1)
        if len(content) > limit:
            return None, AnalyzeError(
                code=ErrorCode.FILE_TOO_LARGE.value,
                message=f"File exceeds the {settings.max_upload_mb} MB upload limit",
                detail={"max_upload_mb": settings.max_upload_mb},
            )
        return store.stage_upload(content=content, original_filename=file.filename), None

    def discard_upload(staged: Path | None) -> None:
        warning = store.discard(staged)
        if warning is not None:
            logger.warning("Upload cleanup failed: %s", warning["detail"])

    @app.get("/")
    def health_check():
        return {"status": "ok", "service": SERVICE_NAME}

    @app.post("/analyze")
    def analyze(file: UploadFile | None = File(default=None, alias="FILE")):
        staged, rejection = stage(file)
        if rejection is not None:
            return JSONResponse(
                status_code=status_for(rejection),
                content={"error": rejection.message, "code": rejection.code},
            )

        try:
            report = run_analyze_file(
                config=analyze_config,
                file=staged,
                original_filename=file.filename,
                rasterizer=rasterizer,
                markup_converter=markup_converter,
            )
        finally:
            discard_upload(staged)

        payload: dict[str, Any] = report.to_dict()
        if not report.ok:
            logger.error("Analyze error for %s: %s", file.filename, payload)
            return JSONResponse(status_code=status_for(report.error), content=payload)
        return payload

    @app.post("/convert-to-pdf")
    def convert_to_pdf(file: UploadFile | None = File(default=None, alias="FILE")):
        staged, rejection = stage(file)
        if rejection is not None:
            return JSONResponse(
                status_code=status_for(rejection),
                content={"ok": False, "error": rejection.message, "code": rejection.code},
            )

        try:
            result = run_convert_to_pdf(
                config=convert_config,
                store=store,
                file=staged,
                original_filename=file.filename,
                rasterizer=rasterizer,
                markup_converter=markup_converter,
            )
        finally:
            discard_upload(staged)

        payload = result.to_dict()
        if not result.ok:
            logger.error("convert-to-pdf error for %s: %s", file.filename, payload)
            return JSONResponse(status_code=status_for(result.error), content=payload)
        return payload

    return app

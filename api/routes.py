"""
api/routes.py — FastAPI route definitions
==========================================
Endpoint summary
----------------
    GET  /health    — Liveness probe
    POST /analyse   — Upload a face video (multipart field "video") and
                      receive the vital-signs report
    GET  /docs      — Auto-generated Swagger UI (FastAPI built-in)

Status codes for /analyse
-------------------------
    200  report produced
    400  upload rejected (missing file, too large, wrong type) or the
         face gate failed; `issues` lists the fixes
    422  the video could not be decoded or held too few frames
    500  anything else
"""

import os
import shutil
import tempfile

from fastapi import APIRouter, File, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from api import analysis
from api.schemas import AnalysisResponse, ErrorResponse, HealthResponse
from config import API_TITLE, API_VERSION, VIDEO_MAX_FILE_SIZE, VIDEO_SUPPORTED_FORMATS
from utils.errors import DecodeError, FaceValidationError, InsufficientData, VitalsError
from utils.logger import get_logger

logger = get_logger("api.routes")

router = APIRouter()

_SUFFIXES = {
    "video/mp4": ".mp4",
    "video/quicktime": ".mov",
    "video/webm": ".webm",
    "video/x-msvideo": ".avi",
}


def _reject(status_code: int, error: str, message: str, **extra) -> HTTPException:
    body = ErrorResponse(error=error, message=message, **extra)
    return HTTPException(status_code=status_code, detail=body.model_dump(exclude_none=True))


def upload_issues(content_type: str | None, size: int) -> list[dict]:
    """Basic checks on an upload before any decoding happens."""
    issues = []
    if size > VIDEO_MAX_FILE_SIZE:
        issues.append({
            "issue": "File size too large",
            "details": f"File size ({size / (1024 * 1024):.2f}MB) exceeds "
                       f"{VIDEO_MAX_FILE_SIZE // (1024 * 1024)}MB limit",
            "fixes": [
                "Compress your video",
                "Record a shorter duration",
                "Lower the video resolution while maintaining face visibility",
            ],
        })
    if content_type not in VIDEO_SUPPORTED_FORMATS:
        issues.append({
            "issue": "Invalid file type",
            "details": f'File type "{content_type}" is not supported',
            "fixes": [f"Supported formats: {', '.join(VIDEO_SUPPORTED_FORMATS)}"],
        })
    return issues


def spool_upload(source, suffix: str) -> tuple[str, int]:
    """Copy an upload stream to a named temp file; return its path and size."""
    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
        shutil.copyfileobj(source, tmp)
        return tmp.name, tmp.tell()


# ── Health ────────────────────────────────────────────────────────────────────

@router.get("/health", response_model=HealthResponse)
async def health():
    """Simple liveness check."""
    return HealthResponse(service=API_TITLE, version=API_VERSION)


# ── Analysis ──────────────────────────────────────────────────────────────────

@router.post(
    "/analyse",
    response_model=AnalysisResponse,
    responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def analyse(video: UploadFile | None = File(None)):
    """Estimate vital signs from an uploaded face video."""
    if video is None or not video.filename:
        raise _reject(400, "NO_VIDEO", "No video file provided",
                      issues=[{"issue": "Missing file",
                               "fixes": ["Please ensure you've selected a video file before uploading"]}])

    suffix = _SUFFIXES.get(video.content_type, os.path.splitext(video.filename)[1])
    path, size = await run_in_threadpool(spool_upload, video.file, suffix)

    try:
        issues = upload_issues(video.content_type, size)
        if issues:
            raise _reject(400, "INVALID_UPLOAD", "Video validation failed", issues=issues)

        report = await run_in_threadpool(analysis.analyse_video, path)
    except FaceValidationError as exc:
        raise _reject(400, exc.code, exc.message, issues=exc.issues, metrics=exc.metrics)
    except (InsufficientData, DecodeError) as exc:
        raise _reject(422, **exc.to_dict())
    except VitalsError as exc:
        logger.error("Analysis failed: %s", exc.message)
        raise _reject(500, **exc.to_dict())
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Unexpected error while analysing upload.")
        raise _reject(500, "ANALYSIS_FAILED", f"Failed to analyze video: {exc}")
    finally:
        await run_in_threadpool(os.unlink, path)
        await video.close()

    return AnalysisResponse(disclaimer=analysis.DISCLAIMER, report=report.to_dict())

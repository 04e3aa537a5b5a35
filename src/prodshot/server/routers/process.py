"""Frame processing endpoints."""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, File, Request, UploadFile
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile as StarletteUploadFile

from prodshot.core import Frame, InlineImage, InputError, ProdshotError, frames_from_images, get_logger
from prodshot.sampling import sample_video

from ..state import get_config, get_pipeline

router = APIRouter(prefix="/api", tags=["process"])
logger = get_logger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


async def _run_pipeline(frames: List[Frame]) -> JSONResponse:
    if not frames:
        return _error(400, "No frames were uploaded.")
    try:
        pipeline = get_pipeline()
        result = await pipeline.run(frames)
    except InputError as exc:
        return _error(400, str(exc))
    except ProdshotError as exc:
        logger.error("Error processing video: %s", exc)
        return _error(500, str(exc))
    except Exception as exc:
        logger.exception("Unexpected error processing video")
        return _error(500, str(exc) or "An unknown error occurred.")
    return JSONResponse(result.to_dict())


@router.post("/process-video")
async def process_video(request: Request) -> JSONResponse:
    """Run the pipeline on uploaded frame images, kept in form order."""

    form = await request.form()
    images: List[InlineImage] = []
    for _, value in form.multi_items():
        if not isinstance(value, StarletteUploadFile):
            continue
        data = await value.read()
        await value.close()
        images.append(InlineImage(data=data, mime_type=value.content_type or "image/jpeg"))
    return await _run_pipeline(frames_from_images(images))


@router.post("/process-upload")
async def process_upload(file: UploadFile = File(...)) -> JSONResponse:
    """Sample candidate frames from an uploaded video, then run the pipeline."""

    temp_path: Optional[Path] = None
    try:
        config = get_config()
        suffix = Path(file.filename or "").suffix or ".mp4"
        with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as handle:
            temp_path = Path(handle.name)
            shutil.copyfileobj(file.file, handle)
        frames = await run_in_threadpool(
            sample_video,
            temp_path,
            config.sampler.frame_count,
            jpeg_quality=config.sampler.jpeg_quality,
            min_duration=config.sampler.min_duration_seconds,
        )
    except InputError as exc:
        return _error(400, str(exc))
    except ProdshotError as exc:
        logger.error("Error sampling uploaded video: %s", exc)
        return _error(500, str(exc))
    except Exception as exc:
        logger.exception("Unexpected error sampling uploaded video")
        return _error(500, str(exc) or "An unknown error occurred.")
    finally:
        file.file.close()
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
    return await _run_pipeline(frames)

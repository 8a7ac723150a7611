# recipesnap/app/routers/ingest.py
from __future__ import annotations

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from recipesnap.app.config import settings
from recipesnap.app.deps import CurrentUser, get_current_user, get_ingestor
from recipesnap.app.schemas.ingest import ErrorResponse, ExtractionDraft
from recipesnap.services.errors import (
    ImageConversionError,
    InvalidInputError,
    NoContentError,
    RateLimitedError,
    ServiceError,
)
from recipesnap.services.ingest import ExtractionRequest, RecipeIngestor
from recipesnap.services.types import ImageAsset

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["ingest"])

FILE_TOO_LARGE = "File too large"
EXTRACTION_FAILED = "Failed to extract recipe"
HEIC_HINT = "Failed to process HEIC image. Please try converting it to JPEG first."


def error_response(status_code: int, message: str, exc: Optional[BaseException] = None) -> JSONResponse:
    """Build the `{error}` body; internal detail is only exposed outside production."""
    body = ErrorResponse(error=message)
    if exc is not None and not settings.is_production:
        body.detail = str(exc)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def map_extraction_error(exc: BaseException) -> JSONResponse:
    if isinstance(exc, InvalidInputError):
        return error_response(400, str(exc))
    if isinstance(exc, ImageConversionError):
        return error_response(422, HEIC_HINT, exc)
    if isinstance(exc, NoContentError):
        return error_response(422, str(exc) or "No recipe content found")
    if isinstance(exc, RateLimitedError):
        return error_response(429, "AI rate limit reached. Please try again in a moment.", exc)
    if isinstance(exc, ServiceError):
        return error_response(502, EXTRACTION_FAILED, exc)
    return error_response(500, EXTRACTION_FAILED, exc)


async def _read_upload(image: Optional[UploadFile]) -> Optional[ImageAsset]:
    if image is None:
        return None
    data = await image.read(settings.MAX_UPLOAD_BYTES + 1)
    if not data:
        return None
    return ImageAsset(
        data=data,
        content_type=image.content_type or "application/octet-stream",
        filename=image.filename or "upload.jpg",
    )


@router.post(
    "/extract-recipe",
    response_model=ExtractionDraft,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def extract_recipe(
    url: Optional[str] = Form(default=None),
    social: bool = Form(default=False),
    image: Optional[UploadFile] = File(default=None),
    user: CurrentUser = Depends(get_current_user),
    ingestor: RecipeIngestor = Depends(get_ingestor),
):
    t0 = time.time()
    asset = await _read_upload(image)
    if asset is not None and asset.size > settings.MAX_UPLOAD_BYTES:
        log.warning("extract.too_large user=%s", user.id)
        return error_response(413, FILE_TOO_LARGE)

    request = ExtractionRequest(url=url, social=social, image=asset)
    try:
        draft = await ingestor.extract(request)
    except Exception as exc:
        dt = time.time() - t0
        if isinstance(exc, (InvalidInputError, NoContentError, ImageConversionError, RateLimitedError)):
            log.warning("extract.fail user=%s error=%s dt=%.2fs", user.id, exc, dt)
        else:
            log.exception("extract.fail user=%s dt=%.2fs", user.id, dt)
        return map_extraction_error(exc)

    log.info("extract.ok user=%s title=%s dt=%.2fs", user.id, draft.title, time.time() - t0)
    return draft

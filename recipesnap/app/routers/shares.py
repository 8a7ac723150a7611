# recipesnap/app/routers/shares.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from starlette.concurrency import run_in_threadpool

from recipesnap.app.config import settings
from recipesnap.app.deps import CurrentUser, get_current_user, get_optional_user, get_share_service
from recipesnap.app.domain.errors import (
    DuplicateRecipeError,
    RecipeSnapError,
    ShareExpiredError,
    ShareNotFoundError,
    SharePermissionError,
)
from recipesnap.app.schemas.recipes import RecipeOut
from recipesnap.app.schemas.shares import SharedRecipeOut, ShareLinkOut, SharePreview
from recipesnap.app.services.share_service import ShareService

log = logging.getLogger(__name__)

router = APIRouter(prefix="/shares", tags=["shares"])


def _http_error(exc: RecipeSnapError) -> HTTPException:
    if isinstance(exc, ShareNotFoundError):
        return HTTPException(status_code=404, detail="Share link not found")
    if isinstance(exc, ShareExpiredError):
        return HTTPException(status_code=status.HTTP_410_GONE, detail=str(exc))
    if isinstance(exc, SharePermissionError):
        return HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, DuplicateRecipeError):
        return HTTPException(status_code=409, detail=str(exc))
    log.error("shares.fail error=%s", exc)
    return HTTPException(status_code=500, detail="Share operation failed")


@router.get("/{share_hash}", response_model=SharePreview)
async def preview_share(
    share_hash: str,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    service: ShareService = Depends(get_share_service),
) -> SharePreview:
    viewer_id = user.id if user else None
    try:
        resolution = await run_in_threadpool(service.resolve_share, share_hash, viewer_id)
    except RecipeSnapError as exc:
        raise _http_error(exc) from exc
    return SharePreview.from_resolution(resolution)


@router.get("/{share_hash}/recipe", response_model=SharedRecipeOut)
async def read_shared_recipe(
    share_hash: str,
    user: CurrentUser = Depends(get_current_user),
    service: ShareService = Depends(get_share_service),
) -> SharedRecipeOut:
    try:
        resolution = await run_in_threadpool(service.resolve_share, share_hash, user.id)
    except RecipeSnapError as exc:
        raise _http_error(exc) from exc
    return SharedRecipeOut(
        share=SharePreview.from_resolution(resolution),
        recipe=RecipeOut.from_domain(resolution.recipe),
    )


@router.post("/{share_hash}/regenerate", response_model=ShareLinkOut)
async def regenerate_share(
    share_hash: str,
    user: CurrentUser = Depends(get_current_user),
    service: ShareService = Depends(get_share_service),
) -> ShareLinkOut:
    try:
        link = await run_in_threadpool(service.regenerate_share, user.id, share_hash)
    except RecipeSnapError as exc:
        raise _http_error(exc) from exc
    return ShareLinkOut.from_domain(link, settings.SHARE_BASE_URL)


@router.post("/{share_hash}/import", response_model=RecipeOut, status_code=status.HTTP_201_CREATED)
async def import_shared_recipe(
    share_hash: str,
    user: CurrentUser = Depends(get_current_user),
    service: ShareService = Depends(get_share_service),
) -> RecipeOut:
    try:
        recipe = await run_in_threadpool(service.import_shared_recipe, user.id, share_hash)
    except RecipeSnapError as exc:
        raise _http_error(exc) from exc
    return RecipeOut.from_domain(recipe)

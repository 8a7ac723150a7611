# recipesnap/app/routers/recipes.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from starlette.concurrency import run_in_threadpool

from recipesnap.app.config import settings
from recipesnap.app.deps import (
    CurrentUser,
    get_collection_service,
    get_current_user,
    get_recipe_service,
    get_share_service,
)
from recipesnap.app.domain.errors import (
    CollectionNotFoundError,
    RecipeNotFoundError,
    RecipeSnapError,
    ValidationError,
)
from recipesnap.app.schemas.recipes import (
    RecipeCollectionsOut,
    RecipeCollectionsUpdate,
    RecipeCreate,
    RecipeListResponse,
    RecipeOut,
    RecipeUpdate,
)
from recipesnap.app.schemas.shares import ShareLinkOut
from recipesnap.app.services.collection_service import CollectionService
from recipesnap.app.services.recipe_service import RecipeService
from recipesnap.app.services.share_service import ShareService

log = logging.getLogger(__name__)

router = APIRouter(prefix="/recipes", tags=["recipes"])


def _http_error(exc: RecipeSnapError) -> HTTPException:
    if isinstance(exc, (RecipeNotFoundError, CollectionNotFoundError)):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=400, detail=str(exc))
    log.error("recipes.fail error=%s", exc)
    return HTTPException(status_code=500, detail="Recipe operation failed")


@router.get("/", response_model=RecipeListResponse)
async def list_recipes(
    favorites: bool = Query(default=False),
    meal_type: Optional[str] = Query(default=None),
    cuisine: Optional[str] = Query(default=None),
    q: Optional[str] = Query(default=None, max_length=200),
    collection_id: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user: CurrentUser = Depends(get_current_user),
    service: RecipeService = Depends(get_recipe_service),
) -> RecipeListResponse:
    try:
        recipes, total = await run_in_threadpool(
            lambda: service.list_recipes(
                user.id,
                favorites_only=favorites,
                meal_type=meal_type,
                cuisine=cuisine,
                search=q,
                collection_id=collection_id,
                limit=limit,
                offset=offset,
            )
        )
    except RecipeSnapError as exc:
        raise _http_error(exc) from exc
    return RecipeListResponse(
        items=[RecipeOut.from_domain(recipe) for recipe in recipes],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post("/", response_model=RecipeOut, status_code=status.HTTP_201_CREATED)
async def create_recipe(
    payload: RecipeCreate,
    user: CurrentUser = Depends(get_current_user),
    service: RecipeService = Depends(get_recipe_service),
) -> RecipeOut:
    try:
        recipe = await run_in_threadpool(service.create_recipe, user.id, payload.model_dump())
    except RecipeSnapError as exc:
        raise _http_error(exc) from exc
    return RecipeOut.from_domain(recipe)


@router.get("/{recipe_id}", response_model=RecipeOut)
async def get_recipe(
    recipe_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: RecipeService = Depends(get_recipe_service),
) -> RecipeOut:
    try:
        recipe = await run_in_threadpool(service.get_recipe, user.id, recipe_id)
    except RecipeSnapError as exc:
        raise _http_error(exc) from exc
    return RecipeOut.from_domain(recipe)


@router.patch("/{recipe_id}", response_model=RecipeOut)
async def update_recipe(
    recipe_id: str,
    payload: RecipeUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: RecipeService = Depends(get_recipe_service),
) -> RecipeOut:
    changes = payload.model_dump(exclude_unset=True)
    try:
        recipe = await run_in_threadpool(service.update_recipe, user.id, recipe_id, changes)
    except RecipeSnapError as exc:
        raise _http_error(exc) from exc
    return RecipeOut.from_domain(recipe)


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recipe(
    recipe_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: RecipeService = Depends(get_recipe_service),
) -> Response:
    try:
        await run_in_threadpool(service.delete_recipe, user.id, recipe_id)
    except RecipeSnapError as exc:
        raise _http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


async def _update_favorite_status(
    service: RecipeService,
    user: CurrentUser,
    recipe_id: str,
    is_favorite: bool,
) -> RecipeOut:
    try:
        recipe = await run_in_threadpool(service.set_favorite, user.id, recipe_id, is_favorite)
    except RecipeSnapError as exc:
        raise _http_error(exc) from exc
    return RecipeOut.from_domain(recipe)


@router.post("/{recipe_id}/favorite", response_model=RecipeOut)
async def favorite_recipe(
    recipe_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: RecipeService = Depends(get_recipe_service),
) -> RecipeOut:
    return await _update_favorite_status(service, user, recipe_id, True)


@router.delete("/{recipe_id}/favorite", response_model=RecipeOut)
async def unfavorite_recipe(
    recipe_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: RecipeService = Depends(get_recipe_service),
) -> RecipeOut:
    return await _update_favorite_status(service, user, recipe_id, False)


@router.post("/{recipe_id}/favorite/toggle", response_model=RecipeOut)
async def toggle_favorite(
    recipe_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: RecipeService = Depends(get_recipe_service),
) -> RecipeOut:
    try:
        recipe = await run_in_threadpool(service.toggle_favorite, user.id, recipe_id)
    except RecipeSnapError as exc:
        raise _http_error(exc) from exc
    return RecipeOut.from_domain(recipe)


@router.put("/{recipe_id}/collections", response_model=RecipeCollectionsOut)
async def set_recipe_collections(
    recipe_id: str,
    payload: RecipeCollectionsUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> RecipeCollectionsOut:
    try:
        diff = await run_in_threadpool(
            service.set_recipe_collections, user.id, recipe_id, payload.collection_ids
        )
    except RecipeSnapError as exc:
        raise _http_error(exc) from exc
    return RecipeCollectionsOut(
        recipe_id=recipe_id,
        collection_ids=sorted(set(payload.collection_ids)),
        added=sorted(diff.to_add),
        removed=sorted(diff.to_remove),
    )


@router.post("/{recipe_id}/share", response_model=ShareLinkOut)
async def share_recipe(
    recipe_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: ShareService = Depends(get_share_service),
) -> ShareLinkOut:
    try:
        link = await run_in_threadpool(service.share_recipe, user.id, recipe_id)
    except RecipeSnapError as exc:
        raise _http_error(exc) from exc
    return ShareLinkOut.from_domain(link, settings.SHARE_BASE_URL)

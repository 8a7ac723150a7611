# recipesnap/app/routers/collections.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from starlette.concurrency import run_in_threadpool

from recipesnap.app.deps import CurrentUser, get_collection_service, get_current_user
from recipesnap.app.domain.errors import (
    CollectionNotFoundError,
    RecipeNotFoundError,
    RecipeSnapError,
    ValidationError,
)
from recipesnap.app.schemas.collections import (
    CollectionCreate,
    CollectionOut,
    CollectionRecipeAdd,
    CollectionUpdate,
)
from recipesnap.app.schemas.recipes import RecipeOut
from recipesnap.app.services.collection_service import CollectionService

router = APIRouter(prefix="/collections", tags=["collections"])


def _http_error(exc: RecipeSnapError) -> HTTPException:
    if isinstance(exc, (CollectionNotFoundError, RecipeNotFoundError)):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=400, detail=str(exc))
    return HTTPException(status_code=500, detail="Collection operation failed")


@router.get("/", response_model=list[CollectionOut])
async def list_collections(
    user: CurrentUser = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> list[CollectionOut]:
    collections = await run_in_threadpool(service.list_collections, user.id)
    return [CollectionOut.from_domain(c) for c in collections]


@router.post("/", response_model=CollectionOut, status_code=status.HTTP_201_CREATED)
async def create_collection(
    payload: CollectionCreate,
    user: CurrentUser = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> CollectionOut:
    try:
        collection = await run_in_threadpool(service.create_collection, user.id, payload.name)
    except RecipeSnapError as exc:
        raise _http_error(exc) from exc
    return CollectionOut.from_domain(collection)


@router.patch("/{collection_id}", response_model=CollectionOut)
async def rename_collection(
    collection_id: str,
    payload: CollectionUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> CollectionOut:
    try:
        collection = await run_in_threadpool(
            service.rename_collection, user.id, collection_id, payload.name
        )
    except RecipeSnapError as exc:
        raise _http_error(exc) from exc
    return CollectionOut.from_domain(collection)


@router.delete("/{collection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_collection(
    collection_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> Response:
    try:
        await run_in_threadpool(service.delete_collection, user.id, collection_id)
    except RecipeSnapError as exc:
        raise _http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{collection_id}/recipes", response_model=list[RecipeOut])
async def list_collection_recipes(
    collection_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> list[RecipeOut]:
    try:
        recipes = await run_in_threadpool(service.list_collection_recipes, user.id, collection_id)
    except RecipeSnapError as exc:
        raise _http_error(exc) from exc
    return [RecipeOut.from_domain(recipe) for recipe in recipes]


@router.post("/{collection_id}/recipes", status_code=status.HTTP_204_NO_CONTENT)
async def add_recipe_to_collection(
    collection_id: str,
    payload: CollectionRecipeAdd,
    user: CurrentUser = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> Response:
    try:
        await run_in_threadpool(service.add_recipe, user.id, collection_id, payload.recipe_id)
    except RecipeSnapError as exc:
        raise _http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{collection_id}/recipes/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_recipe_from_collection(
    collection_id: str,
    recipe_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> Response:
    try:
        await run_in_threadpool(service.remove_recipe, user.id, collection_id, recipe_id)
    except RecipeSnapError as exc:
        raise _http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)

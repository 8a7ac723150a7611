# recipesnap/app/services/recipe_service.py
"""
Recipe management service.
Owner-scoped CRUD, listing filters and favorite state.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from recipesnap.app.domain.errors import (
    CollectionNotFoundError,
    RecipeNotFoundError,
    StorageError,
    ValidationError,
)
from recipesnap.app.domain.models import Recipe
from recipesnap.app.infra.db.base import CollectionRepository, RecipeQuery, RecipeRepository
from recipesnap.services.assets import AssetStore
from recipesnap.services.text import clean_lines

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title",
    "description",
    "ingredients",
    "steps",
    "image_url",
    "image_source_url",
    "meal_type",
    "cuisine",
    "is_favorite",
)
MAX_PAGE_SIZE = 100


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_recipe_fields(data: dict[str, Any], partial: bool = False) -> dict[str, Any]:
    """
    Clean a recipe payload before it is written.

    Args:
        data: Field values keyed by column name
        partial: When True only the keys present are validated

    Returns:
        A new dict restricted to editable columns

    Raises:
        ValidationError: If the title is missing or blank
    """
    cleaned: dict[str, Any] = {}
    for key in EDITABLE_FIELDS:
        if key not in data:
            continue
        value = data[key]
        if key in ("ingredients", "steps"):
            cleaned[key] = clean_lines(value or [])
        elif key == "title":
            cleaned[key] = str(value or "").strip()
        elif key == "description":
            cleaned[key] = str(value or "").strip()
        elif key == "is_favorite":
            cleaned[key] = bool(value)
        else:
            cleaned[key] = _optional_text(value)

    if "title" in cleaned or not partial:
        if not cleaned.get("title"):
            raise ValidationError("Recipe title is required")
    if not partial:
        cleaned.setdefault("description", "")
        cleaned.setdefault("ingredients", [])
        cleaned.setdefault("steps", [])
    if "image_url" in cleaned and not cleaned["image_url"]:
        cleaned["image_source_url"] = None
    return cleaned


class RecipeService:
    """
    Service for a user's recipe library.

    Responsibilities:
    - Create, edit and delete recipes (ingredients/steps always cleaned)
    - List with filters and pagination
    - Explicit favorite writes
    """

    def __init__(
        self,
        repository: RecipeRepository,
        assets: Optional[AssetStore] = None,
        collections: Optional[CollectionRepository] = None,
    ):
        self._repo = repository
        self._assets = assets
        self._collections = collections

    def create_recipe(self, owner_id: str, data: dict[str, Any]) -> Recipe:
        payload = normalize_recipe_fields(data)
        payload["user_id"] = owner_id
        recipe = self._repo.insert(payload)
        logger.info("recipe.create id=%s user=%s", recipe.id, owner_id)
        return recipe

    def get_recipe(self, owner_id: str, recipe_id: str) -> Recipe:
        recipe = self._repo.get(owner_id, recipe_id)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)
        return recipe

    def update_recipe(self, owner_id: str, recipe_id: str, changes: dict[str, Any]) -> Recipe:
        payload = normalize_recipe_fields(changes, partial=True)
        if not payload:
            return self.get_recipe(owner_id, recipe_id)

        recipe = self._repo.update(owner_id, recipe_id, payload)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)
        return recipe

    def list_recipes(
        self,
        owner_id: str,
        *,
        favorites_only: bool = False,
        meal_type: Optional[str] = None,
        cuisine: Optional[str] = None,
        search: Optional[str] = None,
        collection_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Recipe], int]:
        """
        List the owner's recipes, newest first.

        Returns:
            Tuple of (page, total matching count)
        """
        recipe_ids: Optional[list[str]] = None
        if collection_id:
            if self._collections is None or self._collections.get(owner_id, collection_id) is None:
                raise CollectionNotFoundError(collection_id)
            memberships = self._collections.list_memberships([collection_id])
            recipe_ids = memberships.get(collection_id, [])

        query = RecipeQuery(
            favorites_only=favorites_only,
            meal_type=_optional_text(meal_type),
            cuisine=_optional_text(cuisine),
            search=_optional_text(search),
            recipe_ids=recipe_ids,
            limit=max(1, min(limit, MAX_PAGE_SIZE)),
            offset=max(0, offset),
        )
        return self._repo.search(owner_id, query)

    def delete_recipe(self, owner_id: str, recipe_id: str) -> None:
        recipe = self.get_recipe(owner_id, recipe_id)

        if recipe.image_url and self._assets is not None:
            try:
                removed = self._assets.remove(recipe.image_url)
            except StorageError as error:
                logger.warning("recipe.image_delete_fail id=%s error=%s", recipe_id, error)
            else:
                if removed:
                    logger.info("recipe.image_deleted id=%s", recipe_id)

        if not self._repo.delete(owner_id, recipe_id):
            raise RecipeNotFoundError(recipe_id)
        logger.info("recipe.delete id=%s user=%s", recipe_id, owner_id)

    def set_favorite(self, owner_id: str, recipe_id: str, value: bool) -> Recipe:
        recipe = self._repo.update(owner_id, recipe_id, {"is_favorite": bool(value)})
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)
        return recipe

    def toggle_favorite(self, owner_id: str, recipe_id: str) -> Recipe:
        """Flip the favorite flag by writing the negation of the stored value."""
        current = self.get_recipe(owner_id, recipe_id)
        return self.set_favorite(owner_id, recipe_id, not current.is_favorite)

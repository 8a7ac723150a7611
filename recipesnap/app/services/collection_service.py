# recipesnap/app/services/collection_service.py
"""
Collection management service.
Collections group recipes through the collection_recipes join table.
"""
from __future__ import annotations

import logging
from typing import Iterable

from recipesnap.app.domain.errors import (
    CollectionNotFoundError,
    RecipeNotFoundError,
    ValidationError,
)
from recipesnap.app.domain.models import Collection, MembershipDiff, Recipe
from recipesnap.app.infra.db.base import CollectionRepository, RecipeQuery, RecipeRepository

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 120


def reconcile_memberships(current: Iterable[str], desired: Iterable[str]) -> MembershipDiff:
    """
    Compute the writes needed to move from the current membership set to the
    desired one. Both inputs are treated as sets.
    """
    current_set = frozenset(str(item) for item in current if item)
    desired_set = frozenset(str(item) for item in desired if item)
    return MembershipDiff(
        to_add=desired_set - current_set,
        to_remove=current_set - desired_set,
    )


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Collection name is required")
    if len(cleaned) > MAX_NAME_LENGTH:
        raise ValidationError(f"Collection name must be at most {MAX_NAME_LENGTH} characters")
    return cleaned


class CollectionService:
    def __init__(self, collections: CollectionRepository, recipes: RecipeRepository):
        self._collections = collections
        self._recipes = recipes

    def _require_collection(self, owner_id: str, collection_id: str) -> Collection:
        collection = self._collections.get(owner_id, collection_id)
        if collection is None:
            raise CollectionNotFoundError(collection_id)
        return collection

    def _require_recipe(self, owner_id: str, recipe_id: str) -> Recipe:
        recipe = self._recipes.get(owner_id, recipe_id)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)
        return recipe

    def _decorate(self, owner_id: str, collections: list[Collection]) -> list[Collection]:
        """Fill recipe_count and the display image (first member with an image)."""
        memberships = self._collections.list_memberships(c.id for c in collections)
        member_ids = sorted({rid for ids in memberships.values() for rid in ids})
        images: dict[str, str] = {}
        if member_ids:
            recipes, _ = self._recipes.search(
                owner_id, RecipeQuery(recipe_ids=member_ids, limit=len(member_ids))
            )
            images = {r.id: r.image_url for r in recipes if r.image_url}

        for collection in collections:
            ids = memberships.get(collection.id, [])
            collection.recipe_count = len(ids)
            collection.image_url = next((images[rid] for rid in ids if rid in images), None)
        return collections

    def list_collections(self, owner_id: str) -> list[Collection]:
        return self._decorate(owner_id, self._collections.list_for_owner(owner_id))

    def get_collection(self, owner_id: str, collection_id: str) -> Collection:
        return self._decorate(owner_id, [self._require_collection(owner_id, collection_id)])[0]

    def create_collection(self, owner_id: str, name: str) -> Collection:
        collection = self._collections.insert(owner_id, _clean_name(name))
        logger.info("collection.create id=%s user=%s", collection.id, owner_id)
        return collection

    def rename_collection(self, owner_id: str, collection_id: str, name: str) -> Collection:
        cleaned = _clean_name(name)
        self._require_collection(owner_id, collection_id)
        updated = self._collections.update_name(owner_id, collection_id, cleaned)
        if updated is None:
            raise CollectionNotFoundError(collection_id)
        return self._decorate(owner_id, [updated])[0]

    def delete_collection(self, owner_id: str, collection_id: str) -> None:
        """Delete memberships first, then the collection. Recipes are kept."""
        self._require_collection(owner_id, collection_id)
        self._collections.delete_memberships(collection_id)
        self._collections.delete(owner_id, collection_id)
        logger.info("collection.delete id=%s user=%s", collection_id, owner_id)

    def list_collection_recipes(self, owner_id: str, collection_id: str) -> list[Recipe]:
        self._require_collection(owner_id, collection_id)
        ids = self._collections.list_memberships([collection_id]).get(collection_id, [])
        if not ids:
            return []
        recipes, _ = self._recipes.search(owner_id, RecipeQuery(recipe_ids=ids, limit=len(ids)))
        by_id = {recipe.id: recipe for recipe in recipes}
        return [by_id[rid] for rid in ids if rid in by_id]

    def get_recipe_collections(self, owner_id: str, recipe_id: str) -> set[str]:
        self._require_recipe(owner_id, recipe_id)
        return self._collections.list_collection_ids(recipe_id)

    def set_recipe_collections(
        self,
        owner_id: str,
        recipe_id: str,
        desired_ids: Iterable[str],
    ) -> MembershipDiff:
        """
        Make the recipe belong to exactly the desired collections.

        Returns:
            The applied diff (empty when nothing had to change)

        Raises:
            RecipeNotFoundError: If the recipe is not owned by the user
            CollectionNotFoundError: If a desired collection is not owned by the user
        """
        self._require_recipe(owner_id, recipe_id)
        desired = {str(cid) for cid in desired_ids if cid}
        owned = {c.id for c in self._collections.list_for_owner(owner_id)}
        unknown = sorted(desired - owned)
        if unknown:
            raise CollectionNotFoundError(unknown[0])

        current = self._collections.list_collection_ids(recipe_id) & owned
        diff = reconcile_memberships(current, desired)
        if diff.is_empty:
            return diff

        for collection_id in sorted(diff.to_add):
            self._collections.add_membership(collection_id, recipe_id)
        for collection_id in sorted(diff.to_remove):
            self._collections.remove_membership(collection_id, recipe_id)

        logger.info(
            "collection.reconcile recipe=%s added=%d removed=%d",
            recipe_id,
            len(diff.to_add),
            len(diff.to_remove),
        )
        return diff

    def add_recipe(self, owner_id: str, collection_id: str, recipe_id: str) -> bool:
        """Add one recipe. Returns False when it was already a member."""
        self._require_collection(owner_id, collection_id)
        self._require_recipe(owner_id, recipe_id)
        if collection_id in self._collections.list_collection_ids(recipe_id):
            return False
        self._collections.add_membership(collection_id, recipe_id)
        return True

    def remove_recipe(self, owner_id: str, collection_id: str, recipe_id: str) -> bool:
        """Remove one recipe. Returns False when it was not a member."""
        self._require_collection(owner_id, collection_id)
        if collection_id not in self._collections.list_collection_ids(recipe_id):
            return False
        self._collections.remove_membership(collection_id, recipe_id)
        return True

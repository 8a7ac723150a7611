# recipesnap/app/infra/db/base.py
"""
Abstract repositories for recipes, collections and share links.
Services depend on these interfaces so the backing store can be swapped
(Supabase in production, in-memory stubs in tests).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional

from recipesnap.app.domain.models import Collection, Recipe, ShareLink


@dataclass
class RecipeQuery:
    """Filters for listing a user's recipes."""
    favorites_only: bool = False
    meal_type: Optional[str] = None
    cuisine: Optional[str] = None
    search: Optional[str] = None
    recipe_ids: Optional[list[str]] = None
    limit: int = 50
    offset: int = 0


class RecipeRepository(ABC):
    """
    Record-oriented access to the recipes table.

    Every owner-scoped method filters by the owner identity.
    """

    @abstractmethod
    def insert(self, data: dict[str, Any]) -> Recipe:
        """Create a recipe row and return it with its generated id."""
        pass

    @abstractmethod
    def get(self, owner_id: str, recipe_id: str) -> Optional[Recipe]:
        pass

    @abstractmethod
    def get_by_id(self, recipe_id: str) -> Optional[Recipe]:
        """Unscoped read, used when a share link grants access."""
        pass

    @abstractmethod
    def search(self, owner_id: str, query: RecipeQuery) -> tuple[list[Recipe], int]:
        """
        List recipes newest first.

        Returns:
            Tuple of (page of recipes, total matching count)
        """
        pass

    @abstractmethod
    def update(self, owner_id: str, recipe_id: str, changes: dict[str, Any]) -> Optional[Recipe]:
        """
        Apply a partial update.

        Returns:
            The updated recipe, or None if no row matched
        """
        pass

    @abstractmethod
    def delete(self, owner_id: str, recipe_id: str) -> bool:
        pass

    @abstractmethod
    def find_by_title(self, owner_id: str, title: str) -> Optional[Recipe]:
        pass


class CollectionRepository(ABC):
    """Access to collections and the collection_recipes join table."""

    @abstractmethod
    def list_for_owner(self, owner_id: str) -> list[Collection]:
        pass

    @abstractmethod
    def get(self, owner_id: str, collection_id: str) -> Optional[Collection]:
        pass

    @abstractmethod
    def insert(self, owner_id: str, name: str) -> Collection:
        pass

    @abstractmethod
    def update_name(self, owner_id: str, collection_id: str, name: str) -> Optional[Collection]:
        pass

    @abstractmethod
    def delete(self, owner_id: str, collection_id: str) -> None:
        pass

    @abstractmethod
    def list_memberships(self, collection_ids: Iterable[str]) -> dict[str, list[str]]:
        """
        Map each collection id to its member recipe ids, oldest first.
        Collections without members may be absent from the result.
        """
        pass

    @abstractmethod
    def list_collection_ids(self, recipe_id: str) -> set[str]:
        """Collections the recipe currently belongs to."""
        pass

    @abstractmethod
    def add_membership(self, collection_id: str, recipe_id: str) -> None:
        pass

    @abstractmethod
    def remove_membership(self, collection_id: str, recipe_id: str) -> None:
        pass

    @abstractmethod
    def delete_memberships(self, collection_id: str) -> None:
        """Remove every membership of a collection. Recipes are untouched."""
        pass


class ShareLinkRepository(ABC):
    """Access to the shared_recipes table."""

    @abstractmethod
    def get_by_hash(self, share_hash: str) -> Optional[ShareLink]:
        pass

    @abstractmethod
    def find_for_recipe(self, recipe_id: str, created_by: str) -> Optional[ShareLink]:
        """Most recent share of a recipe by a given creator, expired or not."""
        pass

    @abstractmethod
    def insert(self, link: ShareLink) -> ShareLink:
        pass

    @abstractmethod
    def update_hash(
        self,
        old_hash: str,
        new_hash: str,
        expires_at: datetime,
    ) -> Optional[ShareLink]:
        """
        Replace a share's hash and expiry in place.

        Returns:
            The updated share, or None if the old hash no longer exists
        """
        pass

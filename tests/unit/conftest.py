from __future__ import annotations

import itertools
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

import pytest

from recipesnap.app.domain.models import Collection, Recipe, ShareLink
from recipesnap.app.infra.db.base import (
    CollectionRepository,
    RecipeQuery,
    RecipeRepository,
    ShareLinkRepository,
)


class InMemoryRecipeRepository(RecipeRepository):
    def __init__(self) -> None:
        self.rows: dict[str, Recipe] = {}
        self.update_calls: list[tuple[str, dict[str, Any]]] = []
        self.deleted: list[str] = []
        self._ids = itertools.count(1)

    def add(self, owner_id: str, title: str, **fields: Any) -> Recipe:
        return self.insert({"user_id": owner_id, "title": title, **fields})

    def insert(self, data: dict[str, Any]) -> Recipe:
        recipe_id = f"r{next(self._ids)}"
        recipe = Recipe(
            id=recipe_id,
            user_id=data["user_id"],
            title=data["title"],
            description=data.get("description", ""),
            ingredients=list(data.get("ingredients", [])),
            steps=list(data.get("steps", [])),
            image_url=data.get("image_url"),
            image_source_url=data.get("image_source_url"),
            meal_type=data.get("meal_type"),
            cuisine=data.get("cuisine"),
            is_favorite=bool(data.get("is_favorite", False)),
            created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )
        self.rows[recipe_id] = recipe
        return recipe

    def get(self, owner_id: str, recipe_id: str) -> Optional[Recipe]:
        recipe = self.rows.get(recipe_id)
        if recipe is None or recipe.user_id != owner_id:
            return None
        return recipe

    def get_by_id(self, recipe_id: str) -> Optional[Recipe]:
        return self.rows.get(recipe_id)

    def search(self, owner_id: str, query: RecipeQuery) -> tuple[list[Recipe], int]:
        matches = [r for r in self.rows.values() if r.user_id == owner_id]
        if query.favorites_only:
            matches = [r for r in matches if r.is_favorite]
        if query.meal_type:
            matches = [r for r in matches if (r.meal_type or "").lower() == query.meal_type.lower()]
        if query.cuisine:
            matches = [r for r in matches if (r.cuisine or "").lower() == query.cuisine.lower()]
        if query.recipe_ids is not None:
            matches = [r for r in matches if r.id in query.recipe_ids]
        if query.search:
            term = query.search.lower()
            matches = [r for r in matches if term in r.title.lower() or term in r.description.lower()]
        matches.reverse()
        return matches[query.offset:query.offset + query.limit], len(matches)

    def update(self, owner_id: str, recipe_id: str, changes: dict[str, Any]) -> Optional[Recipe]:
        recipe = self.get(owner_id, recipe_id)
        if recipe is None:
            return None
        self.update_calls.append((recipe_id, dict(changes)))
        updated = replace(recipe, **changes)
        self.rows[recipe_id] = updated
        return updated

    def delete(self, owner_id: str, recipe_id: str) -> bool:
        if self.get(owner_id, recipe_id) is None:
            return False
        del self.rows[recipe_id]
        self.deleted.append(recipe_id)
        return True

    def find_by_title(self, owner_id: str, title: str) -> Optional[Recipe]:
        for recipe in self.rows.values():
            if recipe.user_id == owner_id and recipe.title == title:
                return recipe
        return None


class InMemoryCollectionRepository(CollectionRepository):
    def __init__(self) -> None:
        self.collections: dict[str, Collection] = {}
        self.memberships: list[tuple[str, str]] = []
        self.writes: list[tuple[str, str, str]] = []
        self._ids = itertools.count(1)

    def list_for_owner(self, owner_id: str) -> list[Collection]:
        return [c for c in self.collections.values() if c.user_id == owner_id]

    def get(self, owner_id: str, collection_id: str) -> Optional[Collection]:
        collection = self.collections.get(collection_id)
        if collection is None or collection.user_id != owner_id:
            return None
        return collection

    def insert(self, owner_id: str, name: str) -> Collection:
        collection = Collection(id=f"c{next(self._ids)}", user_id=owner_id, name=name)
        self.collections[collection.id] = collection
        return collection

    def update_name(self, owner_id: str, collection_id: str, name: str) -> Optional[Collection]:
        collection = self.get(owner_id, collection_id)
        if collection is None:
            return None
        collection.name = name
        return collection

    def delete(self, owner_id: str, collection_id: str) -> None:
        self.writes.append(("delete_collection", collection_id, ""))
        self.collections.pop(collection_id, None)

    def list_memberships(self, collection_ids: Iterable[str]) -> dict[str, list[str]]:
        wanted = set(collection_ids)
        result: dict[str, list[str]] = {}
        for cid, rid in self.memberships:
            if cid in wanted:
                result.setdefault(cid, []).append(rid)
        return result

    def list_collection_ids(self, recipe_id: str) -> set[str]:
        return {cid for cid, rid in self.memberships if rid == recipe_id}

    def add_membership(self, collection_id: str, recipe_id: str) -> None:
        self.writes.append(("add", collection_id, recipe_id))
        if (collection_id, recipe_id) not in self.memberships:
            self.memberships.append((collection_id, recipe_id))

    def remove_membership(self, collection_id: str, recipe_id: str) -> None:
        self.writes.append(("remove", collection_id, recipe_id))
        self.memberships = [m for m in self.memberships if m != (collection_id, recipe_id)]

    def delete_memberships(self, collection_id: str) -> None:
        self.writes.append(("delete_memberships", collection_id, ""))
        self.memberships = [m for m in self.memberships if m[0] != collection_id]


class InMemoryShareLinkRepository(ShareLinkRepository):
    def __init__(self) -> None:
        self.links: dict[str, ShareLink] = {}
        self.inserts = 0
        self.updates = 0

    def get_by_hash(self, share_hash: str) -> Optional[ShareLink]:
        return self.links.get(share_hash)

    def find_for_recipe(self, recipe_id: str, created_by: str) -> Optional[ShareLink]:
        matches = [
            link
            for link in self.links.values()
            if link.recipe_id == recipe_id and link.created_by == created_by
        ]
        return max(matches, key=lambda link: link.expires_at) if matches else None

    def insert(self, link: ShareLink) -> ShareLink:
        self.inserts += 1
        self.links[link.share_hash] = link
        return link

    def update_hash(self, old_hash: str, new_hash: str, expires_at: datetime) -> Optional[ShareLink]:
        link = self.links.pop(old_hash, None)
        if link is None:
            return None
        self.updates += 1
        renewed = replace(link, share_hash=new_hash, expires_at=expires_at)
        self.links[new_hash] = renewed
        return renewed


@pytest.fixture
def recipe_repo() -> InMemoryRecipeRepository:
    return InMemoryRecipeRepository()


@pytest.fixture
def collection_repo() -> InMemoryCollectionRepository:
    return InMemoryCollectionRepository()


@pytest.fixture
def share_repo() -> InMemoryShareLinkRepository:
    return InMemoryShareLinkRepository()

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Iterable, Optional

from supabase import Client

from recipesnap.app.domain.errors import RepositoryError
from recipesnap.app.domain.models import Collection, Recipe, ShareLink
from recipesnap.app.infra.db.base import (
    CollectionRepository,
    RecipeQuery,
    RecipeRepository,
    ShareLinkRepository,
)
from recipesnap.services.text import clean_lines

logger = logging.getLogger(__name__)

RECIPE_COLUMNS = (
    "id,user_id,title,description,ingredients,steps,image_url,image_source_url,"
    "meal_type,cuisine,is_favorite,created_at"
)
COLLECTION_COLUMNS = "id,user_id,name,created_at"
SHARE_COLUMNS = "share_hash,recipe_id,created_by,created_at,expires_at"

# PostgREST trims trailing zeros from the fraction; fromisoformat on 3.10 wants 3 or 6 digits.
_FRACTION = re.compile(r"\.(\d+)(?=[+-]\d\d:\d\d$|$)")


def _parse_datetime(value: str | datetime | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None

    try:
        normalized = value.replace("Z", "+00:00") if value.endswith("Z") else value
        normalized = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), normalized)
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def _safe_str(value: object) -> str | None:
    return str(value) if value else None


def _lines(value: Any) -> list[str]:
    if isinstance(value, list):
        return clean_lines(value)
    if isinstance(value, str):
        return clean_lines(value.splitlines())
    return []


def _row_to_recipe(row: dict[str, Any]) -> Recipe:
    return Recipe(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        title=str(row.get("title") or ""),
        description=str(row.get("description") or ""),
        ingredients=_lines(row.get("ingredients")),
        steps=_lines(row.get("steps")),
        image_url=_safe_str(row.get("image_url")),
        image_source_url=_safe_str(row.get("image_source_url")),
        meal_type=_safe_str(row.get("meal_type")),
        cuisine=_safe_str(row.get("cuisine")),
        is_favorite=bool(row.get("is_favorite")),
        created_at=_parse_datetime(row.get("created_at")),
    )


def _row_to_collection(row: dict[str, Any]) -> Collection:
    return Collection(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        name=str(row.get("name") or ""),
        created_at=_parse_datetime(row.get("created_at")),
    )


def _row_to_share(row: dict[str, Any]) -> ShareLink:
    expires_at = _parse_datetime(row.get("expires_at"))
    if expires_at is None:
        raise RepositoryError("read share", f"share {row.get('share_hash')} has no expiry")
    return ShareLink(
        share_hash=str(row["share_hash"]),
        recipe_id=str(row["recipe_id"]),
        created_by=str(row["created_by"]),
        expires_at=expires_at,
        created_at=_parse_datetime(row.get("created_at")),
    )


def _safe_search_term(term: str) -> str:
    cleaned = (
        term.replace("%", "")
        .replace(",", " ")
        .replace(";", " ")
        .replace("'", " ")
        .replace("(", " ")
        .replace(")", " ")
    ).strip()
    return cleaned or term.strip()


class SupabaseRecipeRepository(RecipeRepository):
    TABLE_NAME = "recipes"

    def __init__(self, client: Client):
        self._client = client

    def _table(self):
        return self._client.table(self.TABLE_NAME)

    def insert(self, data: dict[str, Any]) -> Recipe:
        try:
            result = self._table().insert(data).execute()
        except (ConnectionError, TimeoutError) as error:
            raise RepositoryError("insert recipe", str(error)) from error
        if not result.data:
            raise RepositoryError("insert recipe", "no row returned")
        recipe = _row_to_recipe(result.data[0])
        logger.info("Created recipe: id=%s, user=%s", recipe.id, recipe.user_id)
        return recipe

    def get(self, owner_id: str, recipe_id: str) -> Optional[Recipe]:
        response = (
            self._table()
            .select(RECIPE_COLUMNS)
            .eq("user_id", owner_id)
            .eq("id", recipe_id)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        return _row_to_recipe(rows[0]) if rows else None

    def get_by_id(self, recipe_id: str) -> Optional[Recipe]:
        response = self._table().select(RECIPE_COLUMNS).eq("id", recipe_id).limit(1).execute()
        rows = response.data or []
        return _row_to_recipe(rows[0]) if rows else None

    def search(self, owner_id: str, query: RecipeQuery) -> tuple[list[Recipe], int]:
        if query.recipe_ids is not None and not query.recipe_ids:
            return [], 0

        builder = (
            self._table()
            .select(RECIPE_COLUMNS, count="exact")
            .eq("user_id", owner_id)
            .order("created_at", desc=True)
        )
        if query.favorites_only:
            builder = builder.eq("is_favorite", True)
        if query.meal_type:
            builder = builder.ilike("meal_type", query.meal_type.strip())
        if query.cuisine:
            builder = builder.ilike("cuisine", query.cuisine.strip())
        if query.recipe_ids:
            builder = builder.in_("id", query.recipe_ids)
        if query.search and query.search.strip():
            pattern = f"%{_safe_search_term(query.search)}%"
            builder = builder.or_(f"title.ilike.{pattern},description.ilike.{pattern}")

        end = query.offset + query.limit - 1
        response = builder.range(query.offset, end).execute()
        recipes = [_row_to_recipe(row) for row in response.data or []]

        total = getattr(response, "count", None)
        if total is None:
            total = len(recipes)
        return recipes, total

    def update(self, owner_id: str, recipe_id: str, changes: dict[str, Any]) -> Optional[Recipe]:
        response = (
            self._table()
            .update(changes)
            .eq("user_id", owner_id)
            .eq("id", recipe_id)
            .execute()
        )
        rows = response.data or []
        if rows:
            return _row_to_recipe(rows[0])
        # older clients do not return the updated row
        return self.get(owner_id, recipe_id) if changes else None

    def delete(self, owner_id: str, recipe_id: str) -> bool:
        response = self._table().delete().eq("user_id", owner_id).eq("id", recipe_id).execute()
        return bool(response.data)

    def find_by_title(self, owner_id: str, title: str) -> Optional[Recipe]:
        response = (
            self._table()
            .select(RECIPE_COLUMNS)
            .eq("user_id", owner_id)
            .eq("title", title)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        return _row_to_recipe(rows[0]) if rows else None


class SupabaseCollectionRepository(CollectionRepository):
    TABLE_NAME = "collections"
    JOIN_TABLE = "collection_recipes"

    def __init__(self, client: Client):
        self._client = client

    def list_for_owner(self, owner_id: str) -> list[Collection]:
        response = (
            self._client.table(self.TABLE_NAME)
            .select(COLLECTION_COLUMNS)
            .eq("user_id", owner_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [_row_to_collection(row) for row in response.data or []]

    def get(self, owner_id: str, collection_id: str) -> Optional[Collection]:
        response = (
            self._client.table(self.TABLE_NAME)
            .select(COLLECTION_COLUMNS)
            .eq("user_id", owner_id)
            .eq("id", collection_id)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        return _row_to_collection(rows[0]) if rows else None

    def insert(self, owner_id: str, name: str) -> Collection:
        result = self._client.table(self.TABLE_NAME).insert({"user_id": owner_id, "name": name}).execute()
        if not result.data:
            raise RepositoryError("insert collection", "no row returned")
        return _row_to_collection(result.data[0])

    def update_name(self, owner_id: str, collection_id: str, name: str) -> Optional[Collection]:
        response = (
            self._client.table(self.TABLE_NAME)
            .update({"name": name})
            .eq("user_id", owner_id)
            .eq("id", collection_id)
            .execute()
        )
        rows = response.data or []
        if rows:
            return _row_to_collection(rows[0])
        return self.get(owner_id, collection_id)

    def delete(self, owner_id: str, collection_id: str) -> None:
        self._client.table(self.TABLE_NAME).delete().eq("user_id", owner_id).eq("id", collection_id).execute()

    def list_memberships(self, collection_ids: Iterable[str]) -> dict[str, list[str]]:
        ids = [str(cid) for cid in collection_ids if cid]
        if not ids:
            return {}
        response = (
            self._client.table(self.JOIN_TABLE)
            .select("collection_id,recipe_id,created_at")
            .in_("collection_id", ids)
            .order("created_at")
            .execute()
        )
        memberships: dict[str, list[str]] = {}
        for row in response.data or []:
            cid = _safe_str(row.get("collection_id"))
            rid = _safe_str(row.get("recipe_id"))
            if not cid or not rid:
                continue
            memberships.setdefault(cid, []).append(rid)
        return memberships

    def list_collection_ids(self, recipe_id: str) -> set[str]:
        response = (
            self._client.table(self.JOIN_TABLE)
            .select("collection_id")
            .eq("recipe_id", recipe_id)
            .execute()
        )
        return {str(row["collection_id"]) for row in response.data or [] if row.get("collection_id")}

    def add_membership(self, collection_id: str, recipe_id: str) -> None:
        self._client.table(self.JOIN_TABLE).upsert(
            {"collection_id": collection_id, "recipe_id": recipe_id},
            on_conflict="collection_id,recipe_id",
        ).execute()

    def remove_membership(self, collection_id: str, recipe_id: str) -> None:
        self._client.table(self.JOIN_TABLE).delete().eq("collection_id", collection_id).eq(
            "recipe_id", recipe_id
        ).execute()

    def delete_memberships(self, collection_id: str) -> None:
        self._client.table(self.JOIN_TABLE).delete().eq("collection_id", collection_id).execute()


class SupabaseShareLinkRepository(ShareLinkRepository):
    TABLE_NAME = "shared_recipes"

    def __init__(self, client: Client):
        self._client = client

    def _table(self):
        return self._client.table(self.TABLE_NAME)

    def get_by_hash(self, share_hash: str) -> Optional[ShareLink]:
        response = self._table().select(SHARE_COLUMNS).eq("share_hash", share_hash).limit(1).execute()
        rows = response.data or []
        return _row_to_share(rows[0]) if rows else None

    def find_for_recipe(self, recipe_id: str, created_by: str) -> Optional[ShareLink]:
        response = (
            self._table()
            .select(SHARE_COLUMNS)
            .eq("recipe_id", recipe_id)
            .eq("created_by", created_by)
            .order("expires_at", desc=True)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        return _row_to_share(rows[0]) if rows else None

    def insert(self, link: ShareLink) -> ShareLink:
        payload = {
            "share_hash": link.share_hash,
            "recipe_id": link.recipe_id,
            "created_by": link.created_by,
            "expires_at": link.expires_at.isoformat(),
        }
        if link.created_at is not None:
            payload["created_at"] = link.created_at.isoformat()
        result = self._table().insert(payload).execute()
        if not result.data:
            raise RepositoryError("insert share", "no row returned")
        logger.info("Created share link: recipe=%s, creator=%s", link.recipe_id, link.created_by)
        return _row_to_share(result.data[0])

    def update_hash(self, old_hash: str, new_hash: str, expires_at: datetime) -> Optional[ShareLink]:
        response = (
            self._table()
            .update({"share_hash": new_hash, "expires_at": expires_at.isoformat()})
            .eq("share_hash", old_hash)
            .execute()
        )
        rows = response.data or []
        if rows:
            return _row_to_share(rows[0])
        return self.get_by_hash(new_hash)

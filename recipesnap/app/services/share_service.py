# recipesnap/app/services/share_service.py
"""
Share link service.
Mints, resolves, regenerates and imports time-limited recipe shares.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from recipesnap.app.domain.errors import (
    DuplicateRecipeError,
    RecipeNotFoundError,
    RepositoryError,
    ShareExpiredError,
    ShareNotFoundError,
    SharePermissionError,
)
from recipesnap.app.domain.models import Recipe, ShareLink, ShareResolution, ShareState
from recipesnap.app.infra.db.base import RecipeRepository, ShareLinkRepository
from recipesnap.services.ids import new_share_hash
from recipesnap.services.text import clean_lines

logger = logging.getLogger(__name__)

DEFAULT_SHARE_TTL_DAYS = 30
MAX_HASH_ATTEMPTS = 8


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ShareService:
    """
    Service for share links.

    A (recipe, creator) pair has at most one share row. An active share is
    reused as-is; an expired one gets a new hash and expiry in place.
    """

    def __init__(
        self,
        shares: ShareLinkRepository,
        recipes: RecipeRepository,
        ttl_days: int = DEFAULT_SHARE_TTL_DAYS,
        hash_factory: Callable[[], str] = new_share_hash,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._shares = shares
        self._recipes = recipes
        self.ttl = timedelta(days=ttl_days)
        self._hash_factory = hash_factory
        self._clock = clock

    def state_of(self, recipe_id: str, owner_id: str) -> ShareState:
        link = self._shares.find_for_recipe(recipe_id, owner_id)
        if link is None:
            return ShareState.NONE
        return link.state_at(self._clock())

    def _unique_hash(self, previous: Optional[str] = None) -> str:
        for _ in range(MAX_HASH_ATTEMPTS):
            candidate = self._hash_factory()
            if candidate == previous:
                continue
            if self._shares.get_by_hash(candidate) is None:
                return candidate
        raise RepositoryError("generate share hash", "could not find an unused hash")

    def share_recipe(self, owner_id: str, recipe_id: str) -> ShareLink:
        """
        Return the share link for a recipe, creating or renewing it as needed.

        Raises:
            RecipeNotFoundError: If the recipe is not owned by the user
        """
        if self._recipes.get(owner_id, recipe_id) is None:
            raise RecipeNotFoundError(recipe_id)

        now = self._clock()
        existing = self._shares.find_for_recipe(recipe_id, owner_id)
        if existing is not None and existing.state_at(now) is ShareState.ACTIVE:
            return existing
        if existing is not None:
            return self._renew(existing, now)

        link = ShareLink(
            share_hash=self._unique_hash(),
            recipe_id=recipe_id,
            created_by=owner_id,
            created_at=now,
            expires_at=now + self.ttl,
        )
        created = self._shares.insert(link)
        logger.info("share.create recipe=%s hash=%s", recipe_id, created.share_hash)
        return created

    def _renew(self, link: ShareLink, now: datetime) -> ShareLink:
        new_hash = self._unique_hash(previous=link.share_hash)
        renewed = self._shares.update_hash(link.share_hash, new_hash, now + self.ttl)
        if renewed is None:
            raise ShareNotFoundError(link.share_hash)
        logger.info("share.renew recipe=%s old=%s new=%s", link.recipe_id, link.share_hash, new_hash)
        return renewed

    def resolve_share(self, share_hash: str, viewer_id: Optional[str] = None) -> ShareResolution:
        """
        Look up a share for a viewer.

        The creator can still read an expired share (flagged expired) so the
        link can be renewed; everyone else gets ShareExpiredError.
        """
        link = self._shares.get_by_hash(share_hash)
        if link is None:
            raise ShareNotFoundError(share_hash)

        is_owner = viewer_id is not None and viewer_id == link.created_by
        expired = link.is_expired(self._clock())
        if expired and not is_owner:
            raise ShareExpiredError(share_hash)

        recipe = self._recipes.get_by_id(link.recipe_id)
        if recipe is None:
            raise ShareNotFoundError(share_hash)
        return ShareResolution(share=link, recipe=recipe, is_owner=is_owner, expired=expired)

    def regenerate_share(self, owner_id: str, share_hash: str) -> ShareLink:
        link = self._shares.get_by_hash(share_hash)
        if link is None:
            raise ShareNotFoundError(share_hash)
        if link.created_by != owner_id:
            raise SharePermissionError()
        return self._renew(link, self._clock())

    def import_shared_recipe(self, viewer_id: str, share_hash: str) -> Recipe:
        """
        Copy a shared recipe into the viewer's own library.

        Raises:
            ShareNotFoundError / ShareExpiredError: If the share cannot be read
            DuplicateRecipeError: If the viewer already has a recipe with that title
        """
        resolution = self.resolve_share(share_hash, viewer_id)
        if resolution.is_owner:
            raise DuplicateRecipeError(resolution.recipe.title)

        source = resolution.recipe
        if self._recipes.find_by_title(viewer_id, source.title) is not None:
            raise DuplicateRecipeError(source.title)

        copy = self._recipes.insert(
            {
                "user_id": viewer_id,
                "title": source.title,
                "description": source.description,
                "ingredients": clean_lines(source.ingredients),
                "steps": clean_lines(source.steps),
                "image_url": source.image_url,
                "image_source_url": source.image_source_url,
                "meal_type": source.meal_type,
                "cuisine": source.cuisine,
                "is_favorite": False,
            }
        )
        logger.info("share.import hash=%s viewer=%s recipe=%s", share_hash, viewer_id, copy.id)
        return copy

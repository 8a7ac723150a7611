# recipesnap/app/schemas/shares.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from recipesnap.app.domain.models import ShareLink, ShareResolution
from recipesnap.app.schemas.recipes import RecipeOut


def share_url(base_url: str, share_hash: str) -> str:
    return f"{base_url.rstrip('/')}/{share_hash}"


class ShareLinkOut(BaseModel):
    share_hash: str
    url: str
    recipe_id: str
    expires_at: datetime
    expired: bool = False

    @classmethod
    def from_domain(cls, link: ShareLink, base_url: str, expired: bool = False) -> "ShareLinkOut":
        return cls(
            share_hash=link.share_hash,
            url=share_url(base_url, link.share_hash),
            recipe_id=link.recipe_id,
            expires_at=link.expires_at,
            expired=expired,
        )


class SharePreview(BaseModel):
    share_hash: str
    title: str
    description: str = ""
    image_url: Optional[str] = None
    expires_at: datetime
    expired: bool
    is_owner: bool
    can_regenerate: bool

    @classmethod
    def from_resolution(cls, resolution: ShareResolution) -> "SharePreview":
        return cls(
            share_hash=resolution.share.share_hash,
            title=resolution.recipe.title,
            description=resolution.recipe.description,
            image_url=resolution.recipe.image_url,
            expires_at=resolution.share.expires_at,
            expired=resolution.expired,
            is_owner=resolution.is_owner,
            can_regenerate=resolution.can_regenerate,
        )


class SharedRecipeOut(BaseModel):
    share: SharePreview
    recipe: RecipeOut

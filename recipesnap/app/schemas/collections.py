# recipesnap/app/schemas/collections.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from recipesnap.app.domain.models import Collection


class CollectionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)


class CollectionUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)


class CollectionOut(BaseModel):
    id: str
    name: str
    image_url: Optional[str] = None
    recipe_count: int = 0
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, collection: Collection) -> "CollectionOut":
        return cls(
            id=collection.id,
            name=collection.name,
            image_url=collection.image_url,
            recipe_count=collection.recipe_count,
            created_at=collection.created_at,
        )


class CollectionRecipeAdd(BaseModel):
    recipe_id: str = Field(..., min_length=1)

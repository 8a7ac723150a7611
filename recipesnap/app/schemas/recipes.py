# recipesnap/app/schemas/recipes.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from recipesnap.app.domain.models import Recipe


class RecipeCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    description: str = Field(default="", max_length=5000)
    ingredients: list[str] = Field(default_factory=list)
    steps: list[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    image_source_url: Optional[str] = None
    meal_type: Optional[str] = Field(default=None, max_length=80)
    cuisine: Optional[str] = Field(default=None, max_length=80)
    is_favorite: bool = False


class RecipeUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=300)
    description: Optional[str] = Field(default=None, max_length=5000)
    ingredients: Optional[list[str]] = None
    steps: Optional[list[str]] = None
    image_url: Optional[str] = None
    image_source_url: Optional[str] = None
    meal_type: Optional[str] = Field(default=None, max_length=80)
    cuisine: Optional[str] = Field(default=None, max_length=80)
    is_favorite: Optional[bool] = None


class RecipeOut(BaseModel):
    id: str
    title: str
    description: str = ""
    ingredients: list[str] = Field(default_factory=list)
    steps: list[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    image_source_url: Optional[str] = None
    meal_type: Optional[str] = None
    cuisine: Optional[str] = None
    is_favorite: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, recipe: Recipe) -> "RecipeOut":
        return cls(
            id=recipe.id,
            title=recipe.title,
            description=recipe.description,
            ingredients=list(recipe.ingredients),
            steps=list(recipe.steps),
            image_url=recipe.image_url,
            image_source_url=recipe.image_source_url,
            meal_type=recipe.meal_type,
            cuisine=recipe.cuisine,
            is_favorite=recipe.is_favorite,
            created_at=recipe.created_at,
        )


class RecipeListResponse(BaseModel):
    items: list[RecipeOut]
    total: int
    limit: int
    offset: int


class RecipeCollectionsUpdate(BaseModel):
    collection_ids: list[str] = Field(default_factory=list)


class RecipeCollectionsOut(BaseModel):
    recipe_id: str
    collection_ids: list[str]
    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)

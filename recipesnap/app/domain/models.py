# recipesnap/app/domain/models.py
"""
Domain models for recipes, collections and share links.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class ShareState(str, Enum):
    """Lifecycle state of a share link at a given instant."""
    NONE = "NONE"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"


@dataclass
class Recipe:
    """A saved recipe owned by a single user."""
    id: str
    user_id: str
    title: str
    description: str = ""
    ingredients: list[str] = field(default_factory=list)
    steps: list[str] = field(default_factory=list)
    image_url: Optional[str] = None
    image_source_url: Optional[str] = None
    meal_type: Optional[str] = None
    cuisine: Optional[str] = None
    is_favorite: bool = False
    created_at: Optional[datetime] = None


@dataclass
class Collection:
    """A named group of recipes. Membership lives in a join table."""
    id: str
    user_id: str
    name: str
    created_at: Optional[datetime] = None

    # Derived, filled by the service layer
    image_url: Optional[str] = None
    recipe_count: int = 0


@dataclass
class ShareLink:
    """Time-limited public handle on one recipe."""
    share_hash: str
    recipe_id: str
    created_by: str
    expires_at: datetime
    created_at: Optional[datetime] = None

    def state_at(self, now: datetime) -> ShareState:
        if self.expires_at <= now:
            return ShareState.EXPIRED
        return ShareState.ACTIVE

    def is_expired(self, now: datetime) -> bool:
        return self.state_at(now) is ShareState.EXPIRED


@dataclass
class ShareResolution:
    """Outcome of resolving a share hash for a given viewer."""
    share: ShareLink
    recipe: Recipe
    is_owner: bool
    expired: bool

    @property
    def can_regenerate(self) -> bool:
        return self.is_owner and self.expired


@dataclass(frozen=True)
class MembershipDiff:
    """Additions and removals needed to reach a desired membership set."""
    to_add: frozenset[str]
    to_remove: frozenset[str]

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove

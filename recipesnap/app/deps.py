# recipesnap/app/deps.py (process-wide singletons exposed as FastAPI dependencies)

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from supabase import Client, create_client

from recipesnap.app.config import settings
from recipesnap.app.infra.db.supabase_repo import (
    SupabaseCollectionRepository,
    SupabaseRecipeRepository,
    SupabaseShareLinkRepository,
)
from recipesnap.app.infra.storage.base import StorageProvider
from recipesnap.app.infra.storage.r2_provider import R2StorageProvider
from recipesnap.app.infra.storage.supabase_provider import SupabaseStorageProvider
from recipesnap.app.services.collection_service import CollectionService
from recipesnap.app.services.recipe_service import RecipeService
from recipesnap.app.services.share_service import ShareService
from recipesnap.services.assets import AssetStore
from recipesnap.services.fetcher import WebContentFetcher
from recipesnap.services.gemini_client import GeminiClient
from recipesnap.services.ingest import RecipeIngestor
from recipesnap.services.social import SocialPostExtractor

logger = logging.getLogger(__name__)

_client: Client | None = None


def get_supabase() -> Client:
    global _client
    if _client is None:
        _client = create_client(str(settings.SUPABASE_URL), settings.SUPABASE_SERVICE_ROLE_KEY)
    return _client


auth_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    id: str
    email: str | None = None
    name: str | None = None


def _resolve_user(supa: Client, token: str) -> CurrentUser | None:
    res = supa.auth.get_user(token)
    user = res.user if res else None
    if not user:
        return None

    # user_metadata may carry a display name
    name = None
    meta = getattr(user, "user_metadata", None) or {}
    if isinstance(meta, dict):
        name = meta.get("name") or meta.get("full_name")

    return CurrentUser(id=str(user.id), email=user.email, name=name)


async def get_current_user(
    cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
    supa: Client = Depends(get_supabase),
) -> CurrentUser:
    """
    Accepts Authorization: Bearer <access_token> issued by Supabase Auth,
    validates it and returns the minimal user identity.
    """
    if cred is None or cred.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")

    try:
        user = _resolve_user(supa, cred.credentials)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid/expired token")
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid token")
    return user


async def get_optional_user(
    cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
    supa: Client = Depends(get_supabase),
) -> CurrentUser | None:
    """Same as get_current_user, but anonymous or invalid callers yield None."""
    if cred is None or cred.scheme.lower() != "bearer":
        return None
    try:
        return _resolve_user(supa, cred.credentials)
    except Exception as exc:
        logger.info("auth.optional_invalid error=%s", exc)
        return None


@lru_cache(maxsize=1)
def get_storage_provider() -> StorageProvider:
    if settings.STORAGE_BACKEND == "r2":
        return R2StorageProvider(
            account_id=settings.R2_ACCOUNT_ID,
            access_key_id=settings.R2_ACCESS_KEY_ID,
            secret_access_key=settings.R2_SECRET_ACCESS_KEY,
            bucket_name=settings.STORAGE_BUCKET,
            public_url=settings.R2_PUBLIC_URL,
        )
    return SupabaseStorageProvider(get_supabase(), bucket_name=settings.STORAGE_BUCKET)


def get_asset_store() -> AssetStore:
    return AssetStore(get_storage_provider())


@lru_cache(maxsize=1)
def get_completion_client() -> GeminiClient:
    return GeminiClient(api_key=settings.GEMINI_API_KEY, model_name=settings.GEMINI_MODEL)


def get_ingestor() -> RecipeIngestor:
    return RecipeIngestor(
        completion=get_completion_client(),
        fetcher=WebContentFetcher(
            scrape_api_url=settings.SCRAPE_API_URL,
            scrape_api_key=settings.SCRAPE_API_KEY,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        ),
        social_extractor=SocialPostExtractor(
            binary=settings.SOCIAL_EXTRACTOR_BIN,
            timeout=settings.SOCIAL_EXTRACTOR_TIMEOUT,
        ),
        assets=get_asset_store(),
        jpeg_quality=settings.IMAGE_JPEG_QUALITY,
    )


def get_recipe_service(supa: Client = Depends(get_supabase)) -> RecipeService:
    return RecipeService(
        SupabaseRecipeRepository(supa),
        assets=get_asset_store(),
        collections=SupabaseCollectionRepository(supa),
    )


def get_collection_service(supa: Client = Depends(get_supabase)) -> CollectionService:
    return CollectionService(SupabaseCollectionRepository(supa), SupabaseRecipeRepository(supa))


def get_share_service(supa: Client = Depends(get_supabase)) -> ShareService:
    return ShareService(
        SupabaseShareLinkRepository(supa),
        SupabaseRecipeRepository(supa),
        ttl_days=settings.SHARE_TTL_DAYS,
    )

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from .assets import AssetStore
from .errors import InvalidInputError, InvalidURLError, StorageUnavailableError
from .fetcher import WebContentFetcher
from .gemini_client import CompletionClient
from .ids import is_http_url
from .images import DEFAULT_JPEG_QUALITY, normalize_image
from .parser import ExtractedRecipe, parse_completion
from .prompts import build_request
from .social import SocialPostExtractor
from .types import CompletionRequest, ContentKind, ExtractionMode, ImageAsset

logger = logging.getLogger(__name__)


class ExtractionDraft(BaseModel):
    title: str
    description: str = ""
    ingredients: list[str] = Field(default_factory=list)
    steps: list[str] = Field(default_factory=list)
    meal_type: str = ""
    cuisine: str = ""
    image_url: Optional[str] = None
    image_source_url: Optional[str] = None


@dataclass
class ExtractionRequest:
    url: Optional[str] = None
    social: bool = False
    image: Optional[ImageAsset] = None

    @property
    def mode(self) -> ExtractionMode:
        has_url = bool(self.url and self.url.strip())
        has_image = self.image is not None and bool(self.image.data)

        if has_url and has_image:
            raise InvalidInputError("Provide either a URL or an image, not both")
        if has_url:
            return ExtractionMode.SOCIAL if self.social else ExtractionMode.URL
        if has_image:
            return ExtractionMode.IMAGE
        raise InvalidInputError("Neither URL nor image provided")


def _to_draft(
    recipe: ExtractedRecipe,
    image_url: Optional[str],
    image_source_url: Optional[str] = None,
) -> ExtractionDraft:
    return ExtractionDraft(
        **recipe.model_dump(),
        image_url=image_url,
        image_source_url=image_source_url if image_url else None,
    )


class RecipeIngestor:
    """
    Turns one extraction request (page URL, social post URL or photo) into
    an unsaved recipe draft.
    """

    def __init__(
        self,
        completion: CompletionClient,
        fetcher: WebContentFetcher,
        social_extractor: SocialPostExtractor,
        assets: AssetStore,
        jpeg_quality: int = DEFAULT_JPEG_QUALITY,
    ) -> None:
        self._completion = completion
        self._fetcher = fetcher
        self._social = social_extractor
        self._assets = assets
        self._jpeg_quality = jpeg_quality

    async def extract(self, request: ExtractionRequest) -> ExtractionDraft:
        mode = request.mode
        handlers: dict[ExtractionMode, Callable[[ExtractionRequest], Awaitable[ExtractionDraft]]] = {
            ExtractionMode.SOCIAL: self._extract_social,
            ExtractionMode.URL: self._extract_url,
            ExtractionMode.IMAGE: self._extract_image,
        }

        t0 = time.monotonic()
        logger.info("ingest.start mode=%s url=%s", mode.value, request.url)
        draft = await handlers[mode](request)
        logger.info(
            "ingest.ok mode=%s ingredients=%d steps=%d image=%s dt=%.2fs",
            mode.value,
            len(draft.ingredients),
            len(draft.steps),
            bool(draft.image_url),
            time.monotonic() - t0,
        )
        return draft

    async def _complete(self, completion_request: CompletionRequest) -> ExtractedRecipe:
        reply = await self._completion.complete(completion_request)
        return parse_completion(reply)

    async def _extract_social(self, request: ExtractionRequest) -> ExtractionDraft:
        url = (request.url or "").strip()
        post = await self._social.extract(url)
        recipe = await self._complete(build_request(ContentKind.SOCIAL_CAPTION, post.caption))
        return _to_draft(recipe, image_url=post.image_url, image_source_url=post.url)

    async def _extract_url(self, request: ExtractionRequest) -> ExtractionDraft:
        url = (request.url or "").strip()
        if not is_http_url(url):
            raise InvalidURLError(f"Not a valid http(s) URL: {url}")

        markdown, preview_image = await asyncio.gather(
            self._fetcher.scrape_markdown(url),
            self._preview_or_none(url),
        )
        recipe = await self._complete(build_request(ContentKind.PAGE_MARKDOWN, markdown))
        return _to_draft(recipe, image_url=preview_image, image_source_url=url)

    async def _extract_image(self, request: ExtractionRequest) -> ExtractionDraft:
        if request.image is None:
            raise InvalidInputError("Neither URL nor image provided")
        asset = await run_in_threadpool(normalize_image, request.image, self._jpeg_quality)
        recipe = await self._complete(build_request(ContentKind.IMAGE, asset))

        image_url: Optional[str] = None
        try:
            image_url = await self._assets.persist(asset)
        except StorageUnavailableError as error:
            logger.warning("ingest.image_store_fail filename=%s error=%s", asset.filename, error)

        return _to_draft(recipe, image_url=image_url)

    async def _preview_or_none(self, url: str) -> Optional[str]:
        try:
            return await self._fetcher.fetch_preview_image(url)
        except Exception as error:
            logger.warning("ingest.preview_fail url=%s error=%s", url, error)
            return None

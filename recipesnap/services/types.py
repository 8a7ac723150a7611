from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional, Union


class ExtractionMode(str, Enum):
    URL = "url"
    SOCIAL = "social"
    IMAGE = "image"


class ContentKind(str, Enum):
    IMAGE = "image"
    PAGE_MARKDOWN = "page_markdown"
    SOCIAL_CAPTION = "social_caption"


@dataclass
class ImageAsset:
    data: bytes
    content_type: str
    filename: str = "upload.jpg"

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class SocialPost:
    platform: Literal["instagram", "tiktok", "youtube"]
    url: str
    caption: str
    image_url: Optional[str] = None
    author: Optional[str] = None


@dataclass
class CompletionPart:
    text: Optional[str] = None
    data: Optional[bytes] = None
    mime_type: Optional[str] = None

    @property
    def is_inline_data(self) -> bool:
        return self.data is not None


@dataclass
class CompletionRequest:
    kind: ContentKind
    system_instruction: str
    parts: list[CompletionPart] = field(default_factory=list)
    max_output_tokens: int = 8192


ResolvedContent = Union[str, ImageAsset]
AssetSource = Union[str, ImageAsset]

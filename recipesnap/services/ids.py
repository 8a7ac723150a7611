# recipesnap/services/ids.py
import re
import secrets
from typing import Literal, Optional, Tuple

SocialPlatform = Literal["instagram", "tiktok", "youtube"]

_IG_RE = re.compile(
    r"^https?://(?:www\.)?instagram\.com/(?:[A-Za-z0-9_.]+/)?(?:reel|reels|p|tv)/([A-Za-z0-9_-]{5,})"
)

_TIKTOK_RE = re.compile(
    r"^https?://(?:(?:www|m)\.)?tiktok\.com/@[A-Za-z0-9_.]+/(?:video|photo)/(\d+)"
    r"|^https?://(?:vm|vt)\.tiktok\.com/([A-Za-z0-9]+)"
)

_YT_RE = re.compile(
    r"^https?://(?:(?:www|m)\.)?(?:youtu\.be/|youtube\.com/(?:watch\?v=|shorts/))([A-Za-z0-9_-]{6,})"
)

# Same alphabet as nanoid, so hashes stay URL-safe
SHARE_HASH_ALPHABET = "useandom-26T198340PX75pxJACKVERYMINDBUSHWOLF_GQZbfghjklqvwyzrict"
SHARE_HASH_LENGTH = 10


def detect_social_platform(url: str) -> Tuple[SocialPlatform, str]:
    """Return (platform, post id) for a supported social post URL."""
    candidate = (url or "").strip()
    m = _IG_RE.search(candidate)
    if m:
        return "instagram", m.group(1)
    m = _TIKTOK_RE.search(candidate)
    if m:
        return "tiktok", m.group(1) or m.group(2)
    m = _YT_RE.search(candidate)
    if m:
        return "youtube", m.group(1)
    raise ValueError(f"URL is not a supported social media post: {url}")


def is_http_url(url: Optional[str]) -> bool:
    return bool(url) and re.match(r"^https?://[^\s/$.?#].[^\s]*$", url.strip(), re.IGNORECASE) is not None


def new_share_hash(length: int = SHARE_HASH_LENGTH) -> str:
    return "".join(secrets.choice(SHARE_HASH_ALPHABET) for _ in range(length))

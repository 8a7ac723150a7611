from __future__ import annotations

import asyncio
import json
import logging
import tempfile
from pathlib import Path
from typing import Optional

from .errors import (
    ExtractorTimeoutError,
    InvalidURLError,
    NoContentError,
    SocialExtractionError,
    UnsupportedPlatformError,
)
from .ids import detect_social_platform, is_http_url
from .types import SocialPost

logger = logging.getLogger(__name__)

DEFAULT_EXTRACTOR_BIN = "yt-dlp"
DEFAULT_TIMEOUT_SECONDS = 60.0
INFO_BASENAME = "post"
_STDERR_TAIL_CHARS = 500


def _clean_string(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _safe_numeric(value: object, default: int | float = 0) -> int | float:
    return value if isinstance(value, (int, float)) else default


def _score_thumbnail(entry: dict) -> tuple[int | float, int | float, int | float]:
    return (
        _safe_numeric(entry.get("preference")),
        _safe_numeric(entry.get("width")),
        _safe_numeric(entry.get("height")),
    )


def _find_best_thumbnail_from_list(thumbnails: list | None) -> str | None:
    if not isinstance(thumbnails, list):
        return None

    scored_thumbnails = [
        (_score_thumbnail(entry), _clean_string(entry.get("url")))
        for entry in thumbnails
        if isinstance(entry, dict) and _clean_string(entry.get("url"))
    ]

    if not scored_thumbnails:
        return None

    scored_thumbnails.sort(reverse=True, key=lambda x: x[0])
    return scored_thumbnails[0][1]


def extract_thumbnail(info: dict | None) -> str | None:
    if not isinstance(info, dict):
        return None

    direct_url = _clean_string(info.get("thumbnail")) or _clean_string(info.get("thumbnail_url"))
    if direct_url:
        return direct_url

    return _find_best_thumbnail_from_list(info.get("thumbnails"))


def _find_info_file(workdir: Path) -> Path | None:
    expected = workdir / f"{INFO_BASENAME}.info.json"
    if expected.exists():
        return expected
    candidates = sorted(workdir.glob("*.info.json"))
    return candidates[0] if candidates else None


class SocialPostExtractor:
    """
    Resolves caption and cover image of a social media post by running the
    yt-dlp command line tool in its own process.

    Every invocation gets a private temporary directory that is removed on
    success, failure and timeout alike.
    """

    def __init__(
        self,
        binary: str = DEFAULT_EXTRACTOR_BIN,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        temp_root: Optional[str] = None,
    ) -> None:
        self.binary = binary
        self.timeout = timeout
        self.temp_root = temp_root

    def build_command(self, url: str, workdir: Path) -> list[str]:
        return [
            self.binary,
            "--skip-download",
            "--write-info-json",
            "--no-playlist",
            "--no-warnings",
            "--quiet",
            "-o",
            str(workdir / f"{INFO_BASENAME}.%(ext)s"),
            url,
        ]

    async def extract(self, url: str) -> SocialPost:
        if not is_http_url(url):
            raise InvalidURLError(f"Not a valid http(s) URL: {url}")
        try:
            platform, post_id = detect_social_platform(url)
        except ValueError as error:
            raise UnsupportedPlatformError(str(error)) from error

        logger.info("social.start platform=%s post=%s", platform, post_id)

        with tempfile.TemporaryDirectory(prefix="recipesnap-social-", dir=self.temp_root) as tmp:
            info = await self._run(url, Path(tmp))

        caption = _clean_string(info.get("description"))
        if not caption:
            raise NoContentError("No caption found for this post")

        return SocialPost(
            platform=platform,
            url=url,
            caption=caption,
            image_url=extract_thumbnail(info),
            author=_clean_string(info.get("uploader")) or _clean_string(info.get("channel")),
        )

    async def _run(self, url: str, workdir: Path) -> dict:
        command = self.build_command(url, workdir)
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as error:
            raise SocialExtractionError(f"Social extractor not available: {error}") from error

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as error:
            process.kill()
            await process.wait()
            logger.warning("social.timeout url=%s timeout=%.1fs", url, self.timeout)
            raise ExtractorTimeoutError(url, self.timeout) from error

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()[-_STDERR_TAIL_CHARS:]
            logger.warning("social.fail url=%s code=%s stderr=%s", url, process.returncode, detail)
            raise SocialExtractionError(f"Social extractor exited with code {process.returncode}")

        info_path = _find_info_file(workdir)
        if info_path is None:
            raise SocialExtractionError("Social extractor produced no metadata")

        try:
            info = json.loads(info_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as error:
            raise SocialExtractionError(f"Unreadable extractor metadata: {error}") from error

        if not isinstance(info, dict):
            raise SocialExtractionError("Unexpected extractor metadata format")
        return info

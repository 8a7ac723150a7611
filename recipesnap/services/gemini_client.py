from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx
from google import genai
from google.genai import types
from google.genai.errors import APIError, ClientError

from .errors import CompletionServiceError, RateLimitedError, ServiceError
from .types import CompletionPart, CompletionRequest

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TEMPERATURE = 0.2


class GeminiConfigurationError(ServiceError):
    pass


class CompletionClient(ABC):
    """Single request/response call to a text-generation model."""

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> str:
        """
        Run one completion.

        Returns:
            The free-form text reply (expected to hold a JSON object).

        Raises:
            RateLimitedError: when the provider rejects the call for quota reasons
            CompletionServiceError: for any other provider failure
        """
        pass


def _is_rate_limited(error: APIError) -> bool:
    status_code = getattr(error, "code", None) or getattr(error, "status_code", None)
    return status_code == 429 or "RESOURCE_EXHAUSTED" in str(error)


class GeminiClient(CompletionClient):
    def __init__(
        self,
        api_key: str,
        model_name: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> None:
        if not api_key:
            raise GeminiConfigurationError("Missing Gemini API key.")
        self.model_name = model_name
        self.temperature = temperature
        self._client = genai.Client(api_key=api_key)

    def _to_part(self, part: CompletionPart) -> types.Part:
        if part.is_inline_data:
            return types.Part.from_bytes(data=part.data, mime_type=part.mime_type or "image/jpeg")
        return types.Part.from_text(text=part.text or "")

    def _build_config(self, request: CompletionRequest) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=request.system_instruction,
            temperature=self.temperature,
            max_output_tokens=request.max_output_tokens,
            response_mime_type="application/json",
        )

    async def complete(self, request: CompletionRequest) -> str:
        contents = [types.Content(role="user", parts=[self._to_part(p) for p in request.parts])]

        try:
            response = await self._client.aio.models.generate_content(
                model=self.model_name,
                contents=contents,
                config=self._build_config(request),
            )
        except ClientError as err:
            if _is_rate_limited(err):
                raise RateLimitedError(
                    "Gemini API limit reached. Try again in a few moments."
                ) from err
            raise CompletionServiceError(f"Gemini rejected the request: {err}") from err
        except APIError as err:
            raise CompletionServiceError(f"Gemini request failed: {err}") from err
        except httpx.HTTPError as err:
            raise CompletionServiceError(f"Gemini unreachable: {err}") from err

        text = response.text if response is not None else None
        logger.debug(
            "gemini.reply kind=%s model=%s chars=%d",
            request.kind.value,
            self.model_name,
            len(text or ""),
        )
        return text or ""

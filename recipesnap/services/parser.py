from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import EmptyCompletionError, MalformedCompletionError
from .text import coerce_lines

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^```[A-Za-z0-9_+-]*[ \t]*(?:\r?\n)?")
_FENCE_CLOSE = re.compile(r"(?:\r?\n)?```$")
_EMBEDDED_FENCE = re.compile(r"```[A-Za-z0-9_+-]*[ \t]*\r?\n(.*?)```", re.DOTALL)
_LOG_PREVIEW_CHARS = 2000


class ExtractedRecipe(BaseModel):
    """Schema of the JSON object the model is asked to produce."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: str
    description: str = ""
    ingredients: list[str] = Field(default_factory=list)
    steps: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("steps", "instructions", "directions"),
    )
    meal_type: str = Field(
        default="",
        validation_alias=AliasChoices("meal_type", "mealType", "meal"),
    )
    cuisine: str = Field(
        default="",
        validation_alias=AliasChoices("cuisine", "cuisineType", "cuisine_type"),
    )

    @field_validator("title", "description", "meal_type", "cuisine", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return ", ".join(coerce_lines(value))
        return str(value).strip()

    @field_validator("ingredients", "steps", mode="before")
    @classmethod
    def _coerce_lines(cls, value: Any) -> list[str]:
        return coerce_lines(value)

    @field_validator("title")
    @classmethod
    def _require_title(cls, value: str) -> str:
        if not value:
            raise ValueError("title is required")
        return value


def strip_code_fences(reply: str) -> str:
    """Remove a surrounding ``` fence (with or without language tag)."""
    text = reply.strip()
    if text.startswith("```"):
        text = _FENCE_OPEN.sub("", text, count=1)
        text = _FENCE_CLOSE.sub("", text.rstrip(), count=1)
    return text.strip()


def _decode(text: str, reply: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        embedded = _EMBEDDED_FENCE.search(reply)
        if not embedded:
            raise
        return json.loads(embedded.group(1))


def parse_completion(reply: str | None) -> ExtractedRecipe:
    if reply is None or not reply.strip():
        raise EmptyCompletionError("No result from the completion service")

    text = strip_code_fences(reply)
    if not text:
        raise EmptyCompletionError("Completion contained only formatting")

    try:
        data = _decode(text, reply)
    except ValueError as error:
        logger.warning("parse.invalid_json error=%s reply=%r", error, reply[:_LOG_PREVIEW_CHARS])
        raise MalformedCompletionError(f"Completion is not valid JSON: {error}", raw_reply=reply) from error

    if not isinstance(data, dict):
        logger.warning("parse.not_object type=%s reply=%r", type(data).__name__, reply[:_LOG_PREVIEW_CHARS])
        raise MalformedCompletionError("Completion JSON is not an object", raw_reply=reply)

    try:
        return ExtractedRecipe.model_validate(data)
    except ValidationError as error:
        logger.warning("parse.schema_fail error=%s reply=%r", error, reply[:_LOG_PREVIEW_CHARS])
        raise MalformedCompletionError(f"Completion is missing required fields: {error}", raw_reply=reply) from error

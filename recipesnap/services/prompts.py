from __future__ import annotations

from .types import CompletionPart, CompletionRequest, ContentKind, ImageAsset, ResolvedContent

JSON_SHAPE = (
    "Return only a JSON object with these keys: "
    '"title" (string), "description" (string), '
    '"ingredients" (array of strings, one ingredient per entry), '
    '"steps" (array of strings, one step per entry), '
    '"meal_type" (string, e.g. breakfast, lunch, dinner, dessert, snack) and '
    '"cuisine" (string, e.g. Italian, Mexican, Japanese). '
    "Use an empty string or empty array when a value is unknown."
)

KEEP_LANGUAGE = "Keep the language the same as the original recipe."

METRIC_CONVERSION = (
    "When ingredients use US imperial measurements (cups, ounces, pounds, etc.), "
    "add the metric conversion in parentheses at the end of the ingredient, "
    "e.g. '1 cup flour (120g)', '1 lb beef (454g)'."
)

IMAGE_SYSTEM_PROMPT = (
    "You are a helpful assistant that extracts recipe information from images. "
    "Return the data in a consistent JSON format. "
    f"{KEEP_LANGUAGE} Also identify the meal type and the cuisine of the dish."
)

PAGE_SYSTEM_PROMPT = (
    "You are a helpful assistant that extracts recipe information from web pages "
    "converted to markdown. Return the data in a consistent JSON format. "
    f"{METRIC_CONVERSION} {KEEP_LANGUAGE}"
)

SOCIAL_SYSTEM_PROMPT = (
    "You are a helpful assistant that extracts recipe information from social media "
    "post captions. Return the data in a consistent JSON format. "
    f"{METRIC_CONVERSION} {KEEP_LANGUAGE}"
)

IMAGE_MAX_OUTPUT_TOKENS = 4096


def _image_request(asset: ImageAsset) -> CompletionRequest:
    instruction = f"Extract the recipe information from this image. {JSON_SHAPE} {KEEP_LANGUAGE}"
    return CompletionRequest(
        kind=ContentKind.IMAGE,
        system_instruction=IMAGE_SYSTEM_PROMPT,
        parts=[
            CompletionPart(text=instruction),
            CompletionPart(data=asset.data, mime_type=asset.content_type),
        ],
        max_output_tokens=IMAGE_MAX_OUTPUT_TOKENS,
    )


def _page_request(markdown: str) -> CompletionRequest:
    instruction = (
        "Extract the recipe information from this web page content. "
        f"{JSON_SHAPE} {METRIC_CONVERSION} {KEEP_LANGUAGE}\n\n"
        f"## PAGE CONTENT\n{markdown.strip()}"
    )
    return CompletionRequest(
        kind=ContentKind.PAGE_MARKDOWN,
        system_instruction=PAGE_SYSTEM_PROMPT,
        parts=[CompletionPart(text=instruction)],
    )


def _social_request(caption: str) -> CompletionRequest:
    instruction = (
        "Extract the recipe information from this social media post caption. "
        f"{JSON_SHAPE} {METRIC_CONVERSION} {KEEP_LANGUAGE}\n\n"
        f"## CAPTION\n{caption.strip()}"
    )
    return CompletionRequest(
        kind=ContentKind.SOCIAL_CAPTION,
        system_instruction=SOCIAL_SYSTEM_PROMPT,
        parts=[CompletionPart(text=instruction)],
    )


def build_request(kind: ContentKind, content: ResolvedContent) -> CompletionRequest:
    """Assemble the completion payload for one kind of resolved content."""
    if kind is ContentKind.IMAGE:
        if not isinstance(content, ImageAsset):
            raise TypeError("Image requests need an ImageAsset")
        return _image_request(content)

    if not isinstance(content, str):
        raise TypeError(f"{kind.value} requests need text content")

    if kind is ContentKind.PAGE_MARKDOWN:
        return _page_request(content)
    if kind is ContentKind.SOCIAL_CAPTION:
        return _social_request(content)

    raise ValueError(f"Unsupported content kind: {kind}")

# recipesnap/services/text.py
from __future__ import annotations

from typing import Any, Iterable


def clean_lines(values: Iterable[Any] | None) -> list[str]:
    """Trim every entry and drop the ones left blank, keeping order."""
    if values is None:
        return []
    out: list[str] = []
    for value in values:
        if value is None:
            continue
        text = value if isinstance(value, str) else str(value)
        stripped = text.strip()
        if stripped:
            out.append(stripped)
    return out


def split_lines(block: str | None) -> list[str]:
    """Split a free-text block (one entry per line) into clean entries."""
    if not block:
        return []
    return clean_lines(block.splitlines())


def coerce_lines(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return split_lines(value)
    if isinstance(value, dict):
        return clean_lines(value.values())
    if isinstance(value, (list, tuple)):
        return clean_lines(_flatten_entry(item) for item in value)
    return clean_lines([value])


def _flatten_entry(item: Any) -> Any:
    # {"quantity": "1 cup", "name": "flour"} -> "1 cup flour"
    if isinstance(item, dict):
        return " ".join(str(v).strip() for v in item.values() if v not in (None, ""))
    return item

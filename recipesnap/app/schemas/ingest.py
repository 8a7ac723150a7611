# recipesnap/app/schemas/ingest.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from recipesnap.services.ingest import ExtractionDraft

__all__ = ["ErrorResponse", "ExtractionDraft"]


class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None

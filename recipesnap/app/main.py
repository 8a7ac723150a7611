# recipesnap/app/main.py
from __future__ import annotations
import logging
import sys
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from recipesnap import __version__
from recipesnap.app.config import settings
from recipesnap.app.routers.auth import router as auth_router
from recipesnap.app.routers.collections import router as collections_router
from recipesnap.app.routers.ingest import FILE_TOO_LARGE, error_response
from recipesnap.app.routers.ingest import router as ingest_router
from recipesnap.app.routers.recipes import router as recipes_router
from recipesnap.app.routers.shares import router as shares_router

# Plain stdout logging (works for dev and containers)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

log = logging.getLogger(__name__)

UPLOAD_PATHS = ("/api/extract-recipe",)

app = FastAPI(title="RecipeSnap API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def reject_oversized_uploads(request: Request, call_next):
    """Refuse extraction bodies whose declared length exceeds the upload limit."""
    if request.method == "POST" and request.url.path in UPLOAD_PATHS:
        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > settings.MAX_UPLOAD_BYTES:
            log.warning("upload.rejected path=%s bytes=%s", request.url.path, declared)
            return error_response(413, FILE_TOO_LARGE)
    return await call_next(request)


app.include_router(auth_router)
app.include_router(ingest_router)
app.include_router(recipes_router)
app.include_router(collections_router)
app.include_router(shares_router)


@app.get("/health")
def health():
    return {"ok": True}

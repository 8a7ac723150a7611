# recipesnap/app/routers/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from recipesnap.app.deps import CurrentUser, get_current_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=CurrentUser)
async def read_current_user(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Identity behind the bearer token, as seen by the API."""
    return user

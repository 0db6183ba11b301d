"""User router — profile read / update and account deletion."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from fluxstack.auth.dependencies import get_current_user
from fluxstack.auth.models import User
from fluxstack.auth.service import revoke_all_sessions
from fluxstack.common.responses import MessageOut, SuccessResponse, message, success
from fluxstack.config import settings
from fluxstack.database import get_db
from fluxstack.user.schemas import ProfileOut, ProfileUpdate, ProfileUpdateResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["user"])


# ── GET /profile ────────────────────────────────────────────────────

@router.get("/profile", response_model=SuccessResponse[ProfileOut])
async def get_profile(user: User = Depends(get_current_user)):
    return success(ProfileOut.model_validate(user))


# ── PATCH /profile ──────────────────────────────────────────────────

@router.patch("/profile", response_model=SuccessResponse[ProfileUpdateResponse])
async def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    for field, value in body.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(user, field, value)
    await db.flush()
    await db.refresh(user)

    return success(
        ProfileUpdateResponse(
            message="Profile updated successfully",
            user=ProfileOut.model_validate(user),
        )
    )


# ── DELETE /account ─────────────────────────────────────────────────

@router.delete("/account", response_model=SuccessResponse[MessageOut])
async def delete_account(
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Flag the account for deletion and sign it out everywhere."""
    user.deletion_requested_at = datetime.now(timezone.utc)
    await revoke_all_sessions(db, user.id)
    await db.flush()
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    logger.info("Account deletion requested: %s", user.email)
    return message(f"Account {user.email} scheduled for deletion")

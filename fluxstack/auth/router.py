"""Auth router — e-mail sign-up / sign-in, sign-out, current user."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from fluxstack.auth import service
from fluxstack.auth.bruteforce import AttemptTracker, get_attempt_tracker, resolve_identifier
from fluxstack.auth.dependencies import get_current_user
from fluxstack.auth.models import User
from fluxstack.auth.schemas import (
    AuthResponse,
    MeResponse,
    SignInRequest,
    SignUpRequest,
    UserOut,
)
from fluxstack.common.exceptions import AccountLockedException, UnauthorizedException
from fluxstack.common.rate_limit import limiter
from fluxstack.common.responses import MessageOut, SuccessResponse, message, success
from fluxstack.config import settings
from fluxstack.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["auth"])


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_EXPIRY_DAYS * 24 * 3600,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def _client_info(request: Request) -> tuple[Optional[str], Optional[str]]:
    ip = request.client.host if request.client else None
    return ip, request.headers.get("user-agent")


# ── POST /sign-up/email ─────────────────────────────────────────────

@router.post("/sign-up/email", response_model=SuccessResponse[AuthResponse], status_code=201)
@limiter.limit(settings.auth_rate_limit)
async def sign_up(
    request: Request,
    response: Response,
    body: SignUpRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await service.register_user(
        db,
        email=body.email,
        password=body.password,
        name=body.name,
        image=str(body.image) if body.image else None,
    )
    ip, user_agent = _client_info(request)
    token = await service.create_session(db, user, ip, user_agent)
    _set_session_cookie(response, token)
    return success(AuthResponse(token=token, user=UserOut.model_validate(user)))


# ── POST /sign-in/email ─────────────────────────────────────────────

@router.post("/sign-in/email", response_model=SuccessResponse[AuthResponse])
@limiter.limit(settings.auth_rate_limit)
async def sign_in(
    request: Request,
    response: Response,
    body: SignInRequest,
    db: AsyncSession = Depends(get_db),
    tracker: AttemptTracker = Depends(get_attempt_tracker),
):
    identifier = resolve_identifier(body.email, request)

    status = tracker.check_locked(identifier)
    if status.locked:
        logger.warning(
            "Sign-in rejected for locked identifier %s (%ds remaining)",
            identifier,
            status.remaining_seconds,
        )
        raise AccountLockedException(status.remaining_seconds)

    user = await service.authenticate(db, body.email, body.password)
    if user is None:
        tracker.record_failure(identifier)
        raise UnauthorizedException("Invalid email or password")

    tracker.clear(identifier)
    ip, user_agent = _client_info(request)
    token = await service.create_session(db, user, ip, user_agent)
    _set_session_cookie(response, token)
    return success(AuthResponse(token=token, user=UserOut.model_validate(user)))


# ── POST /sign-out ──────────────────────────────────────────────────

@router.post("/sign-out", response_model=SuccessResponse[MessageOut])
async def sign_out(
    request: Request,
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await service.revoke_session(db, request.state.session.id)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return message("Signed out successfully")


# ── GET /me ─────────────────────────────────────────────────────────

@router.get("/me", response_model=SuccessResponse[MeResponse])
async def me(user: User = Depends(get_current_user)):
    return success(MeResponse(user=UserOut.model_validate(user)))

"""Auth dependencies — session resolution and authentication enforcement."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fluxstack.auth.models import User
from fluxstack.auth.service import get_active_session
from fluxstack.common.exceptions import UnauthorizedException
from fluxstack.config import settings
from fluxstack.database import get_db


def extract_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, else the session cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


# ── Core dependencies ───────────────────────────────────────────────

async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Resolve the session if there is one; anonymous requests get None.

    The session row is attached to ``request.state.session`` for handlers
    that need it (sign-out).
    """
    request.state.session = None
    token = extract_token(request)
    if not token:
        return None

    session = await get_active_session(db, token)
    if session is None:
        return None

    result = await db.execute(
        select(User).where(
            User.id == session.user_id,
            User.deletion_requested_at.is_(None),
        ),
    )
    user = result.scalars().first()
    if user is not None:
        request.state.session = session
    return user


async def get_current_user(
    user: Optional[User] = Depends(get_optional_user),
) -> User:
    """Require an authenticated session."""
    if user is None:
        raise UnauthorizedException()
    return user

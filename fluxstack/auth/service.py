"""Auth service — password hashing, JWT sessions, sign-up / sign-in."""

from __future__ import annotations

import hashlib
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
from jose import JWTError, jwt
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fluxstack.auth.models import User, UserSession
from fluxstack.common.exceptions import ConflictError
from fluxstack.config import settings

logger = logging.getLogger(__name__)


# ── Passwords ───────────────────────────────────────────────────────

def _password_bytes(plain: str) -> bytes:
    # bcrypt only considers the first 72 bytes
    return plain.encode("utf-8")[:72]


def hash_password(plain: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(plain), salt).decode("utf-8")


def verify_password(plain: str, password_hash: str) -> bool:
    if not plain or not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(plain), password_hash.encode("utf-8"))
    except ValueError:
        return False


# ── JWT helpers ─────────────────────────────────────────────────────

def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def create_session_token(user_id: uuid.UUID, session_id: uuid.UUID, expires_at: datetime) -> str:
    payload = {
        "sub": str(user_id),
        "sid": str(session_id),
        "type": "session",
        "exp": expires_at,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_session_token(token: str) -> Optional[dict[str, Any]]:
    """Return the claims of a valid session token, or None."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError:
        return None
    if payload.get("type") != "session":
        return None
    return payload


# ── Users ───────────────────────────────────────────────────────────

async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalars().first()


async def register_user(
    db: AsyncSession,
    email: str,
    password: str,
    name: Optional[str] = None,
    image: Optional[str] = None,
) -> User:
    """Create a user account; raise 409 when the e-mail is taken."""
    if await get_user_by_email(db, email) is not None:
        raise ConflictError("email", email)

    user = User(
        email=email,
        name=name,
        image=image,
        password_hash=hash_password(password),
    )
    db.add(user)
    await db.flush()
    logger.info("User registered: %s", email)
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> Optional[User]:
    """Return the user when the credentials match, else None."""
    user = await get_user_by_email(db, email)
    if user is None or user.deletion_requested_at is not None:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


# ── Session management ──────────────────────────────────────────────

async def create_session(
    db: AsyncSession,
    user: User,
    ip: Optional[str],
    user_agent: Optional[str],
) -> str:
    """Persist a session for *user* and return its token."""
    session_id = uuid.uuid4()
    expires_at = datetime.now(timezone.utc) + timedelta(days=settings.SESSION_EXPIRY_DAYS)
    token = create_session_token(user.id, session_id, expires_at)

    db.add(
        UserSession(
            id=session_id,
            user_id=user.id,
            token_hash=hash_token(token),
            ip_address=ip,
            user_agent=user_agent,
            expires_at=expires_at,
        )
    )
    await db.flush()
    return token


async def get_active_session(db: AsyncSession, token: str) -> Optional[UserSession]:
    """Return the live session row for *token* (not revoked, not expired)."""
    if decode_session_token(token) is None:
        return None
    result = await db.execute(
        select(UserSession).where(
            UserSession.token_hash == hash_token(token),
            UserSession.is_revoked.is_(False),
            UserSession.expires_at > datetime.now(timezone.utc),
        ),
    )
    return result.scalars().first()


async def revoke_session(db: AsyncSession, session_id: uuid.UUID) -> None:
    await db.execute(
        update(UserSession)
        .where(UserSession.id == session_id)
        .values(is_revoked=True)
    )


async def revoke_all_sessions(db: AsyncSession, user_id: uuid.UUID) -> None:
    await db.execute(
        update(UserSession)
        .where(UserSession.user_id == user_id, UserSession.is_revoked.is_(False))
        .values(is_revoked=True)
    )

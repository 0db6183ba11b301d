"""Auth Pydantic schemas for request / response validation."""


import re
import uuid
from datetime import datetime
from typing import Optional

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, EmailStr, Field, field_validator

from fluxstack.common.constants import NAME_MAX, PASSWORD_MAX_LENGTH, PASSWORD_MIN_LENGTH

_PASSWORD_RULES: list[tuple[str, str]] = [
    (r"[a-z]", "Password must contain at least one lowercase letter"),
    (r"[A-Z]", "Password must contain at least one uppercase letter"),
    (r"[0-9]", "Password must contain at least one number"),
]


def check_password_policy(password: str) -> str:
    """Raise ValueError with the first unmet password rule."""
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password) > PASSWORD_MAX_LENGTH:
        raise ValueError(f"Password must not exceed {PASSWORD_MAX_LENGTH} characters")
    for pattern, error in _PASSWORD_RULES:
        if not re.search(pattern, password):
            raise ValueError(error)
    return password


# ── Requests ────────────────────────────────────────────────────────

class SignUpRequest(BaseModel):
    email: EmailStr
    password: str
    name: Optional[str] = Field(None, min_length=2, max_length=NAME_MAX)
    image: Optional[AnyHttpUrl] = None

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def _password_policy(cls, value: str) -> str:
        return check_password_policy(value)


class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.lower()


# ── Responses ───────────────────────────────────────────────────────

class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    email_verified: bool = False
    created_at: Optional[datetime] = None


class AuthResponse(BaseModel):
    token: str
    user: UserOut


class MeResponse(BaseModel):
    user: UserOut

"""User profile schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from fluxstack.common.constants import DESCRIPTION_MAX, NAME_MAX


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    name: Optional[str] = None
    bio: Optional[str] = None
    image: Optional[str] = None
    email_verified: bool = False
    created_at: Optional[datetime] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=NAME_MAX)
    bio: Optional[str] = Field(None, max_length=DESCRIPTION_MAX)


class ProfileUpdateResponse(BaseModel):
    message: str
    user: ProfileOut

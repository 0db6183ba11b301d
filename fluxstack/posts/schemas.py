"""Posts Pydantic v2 schemas — request/response validation."""

import uuid
from datetime import datetime
from typing import Annotated, List, Optional

from fastapi import Query
from pydantic import BaseModel, ConfigDict, Field

from fluxstack.common.constants import (
    DESCRIPTION_MAX,
    MAX_TAGS_PER_POST,
    TAG_NAME_MAX,
    TITLE_MAX,
    TITLE_MIN,
)

TagName = Annotated[str, Field(max_length=TAG_NAME_MAX)]


# ═════════════════════════════════════════════════════════════════════
# Embedded
# ═════════════════════════════════════════════════════════════════════


class AuthorBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: Optional[str] = None
    email: str


# ═════════════════════════════════════════════════════════════════════
# Posts
# ═════════════════════════════════════════════════════════════════════


class PostOut(BaseModel):
    id: uuid.UUID
    slug: str
    title: str
    description: Optional[str] = None
    content: str
    is_published: bool = False
    tags: List[str] = []
    author: AuthorBrief
    favorites_count: int = 0
    favorited: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PostCreate(BaseModel):
    title: str = Field(..., min_length=TITLE_MIN, max_length=TITLE_MAX)
    description: Optional[str] = Field(None, max_length=DESCRIPTION_MAX)
    content: str = Field(..., min_length=1)
    tags: List[TagName] = Field(default_factory=list, max_length=MAX_TAGS_PER_POST)


class PostUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=TITLE_MIN, max_length=TITLE_MAX)
    description: Optional[str] = Field(None, max_length=DESCRIPTION_MAX)
    content: Optional[str] = Field(None, min_length=1)
    is_published: Optional[bool] = None
    tags: Optional[List[TagName]] = Field(None, max_length=MAX_TAGS_PER_POST)


class PostFilterParams:
    """Inject via ``Depends(PostFilterParams)`` on the post list endpoint."""

    def __init__(
        self,
        tag: Optional[str] = Query(None, description="Only posts carrying this tag"),
        author: Optional[str] = Query(None, description="Author e-mail or name"),
        favorited: Optional[str] = Query(None, description="E-mail of a user who favorited"),
        search: Optional[str] = Query(None, description="Matches title, description or content"),
    ) -> None:
        self.tag = tag
        self.author = author
        self.favorited = favorited
        self.search = search


# ═════════════════════════════════════════════════════════════════════
# Tags
# ═════════════════════════════════════════════════════════════════════


class TagCount(BaseModel):
    name: str
    posts_count: int


class TagListOut(BaseModel):
    tags: List[TagCount]

"""Posts router — CRUD by slug, favorites, tag listing.

Reads are public (the ``favorited`` flag reflects the caller when signed
in); writes require a session and, for update / delete, ownership.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fluxstack.auth.dependencies import get_current_user, get_optional_user
from fluxstack.auth.models import User
from fluxstack.common.pagination import PaginationParams, build_pagination_meta
from fluxstack.common.responses import (
    MessageOut,
    PaginatedResponse,
    SuccessResponse,
    message,
    paginated,
    success,
)
from fluxstack.database import get_db
from fluxstack.posts.schemas import (
    PostCreate,
    PostFilterParams,
    PostOut,
    PostUpdate,
    TagListOut,
)
from fluxstack.posts.service import PostService

router = APIRouter(prefix="", tags=["posts"])


# ── GET / ────────────────────────────────────────────────────────────

@router.get("", response_model=PaginatedResponse[PostOut])
async def list_posts(
    filters: PostFilterParams = Depends(),
    params: PaginationParams = Depends(),
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """List posts with optional tag / author / favorited / search filters."""
    posts, total = await PostService.list_posts(db, filters, params)
    data = await PostService.to_out(db, posts, viewer)
    return paginated(data, build_pagination_meta(total, params))


# ── POST / ───────────────────────────────────────────────────────────

@router.post("", response_model=SuccessResponse[PostOut], status_code=201)
async def create_post(
    body: PostCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await PostService.create_post(db, user, body)
    return success(await PostService.one_out(db, post, user))


# ── GET /tags/all ────────────────────────────────────────────────────

@router.get("/tags/all", response_model=SuccessResponse[TagListOut])
async def list_tags(db: AsyncSession = Depends(get_db)):
    """Every tag in use with the number of posts carrying it."""
    return success(TagListOut(tags=await PostService.list_tags(db)))


# ── GET /{slug} ──────────────────────────────────────────────────────

@router.get("/{slug}", response_model=SuccessResponse[PostOut])
async def get_post(
    slug: str,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    post = await PostService.get_by_slug(db, slug)
    return success(await PostService.one_out(db, post, viewer))


# ── PATCH /{slug} ────────────────────────────────────────────────────

@router.patch("/{slug}", response_model=SuccessResponse[PostOut])
async def update_post(
    slug: str,
    body: PostUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await PostService.get_owned(db, slug, user)
    post = await PostService.update_post(db, post, body)
    return success(await PostService.one_out(db, post, user))


# ── DELETE /{slug} ───────────────────────────────────────────────────

@router.delete("/{slug}", response_model=SuccessResponse[MessageOut])
async def delete_post(
    slug: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await PostService.get_owned(db, slug, user)
    await PostService.delete_post(db, post)
    return message("Post deleted successfully")


# ── POST /{slug}/favorite ────────────────────────────────────────────

@router.post("/{slug}/favorite", response_model=SuccessResponse[PostOut])
async def favorite_post(
    slug: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await PostService.get_by_slug(db, slug)
    await PostService.favorite(db, post, user)
    return success(await PostService.one_out(db, post, user))


# ── DELETE /{slug}/favorite ──────────────────────────────────────────

@router.delete("/{slug}/favorite", response_model=SuccessResponse[PostOut])
async def unfavorite_post(
    slug: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await PostService.get_by_slug(db, slug)
    await PostService.unfavorite(db, post, user)
    return success(await PostService.one_out(db, post, user))

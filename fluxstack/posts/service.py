"""Posts service layer — CRUD, filtering, favorites and tag listing."""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fluxstack.auth.models import User
from fluxstack.common.constants import FALLBACK_SLUG
from fluxstack.common.exceptions import ForbiddenException, NotFoundException
from fluxstack.common.pagination import PaginationParams
from fluxstack.posts.models import Post, PostFavorite, PostTag, Tag
from fluxstack.posts.schemas import (
    AuthorBrief,
    PostCreate,
    PostFilterParams,
    PostOut,
    PostUpdate,
    TagCount,
)
from fluxstack.posts.utils import ensure_unique_slug, generate_slug, get_tag_names, sync_tags

logger = logging.getLogger(__name__)


class PostService:
    """Business logic for post operations."""

    # ── Lookups ───────────────────────────────────────────────────────

    @staticmethod
    async def get_by_slug(db: AsyncSession, slug: str) -> Post:
        result = await db.execute(select(Post).where(Post.slug == slug))
        post = result.scalars().first()
        if post is None:
            raise NotFoundException("Post")
        return post

    @staticmethod
    async def get_owned(db: AsyncSession, slug: str, user: User) -> Post:
        """Fetch a post the caller is allowed to modify."""
        post = await PostService.get_by_slug(db, slug)
        if post.user_id != user.id:
            raise ForbiddenException("You can only modify your own posts.")
        return post

    @staticmethod
    async def _unique_slug_for(
        db: AsyncSession, title: str, exclude_post_id: Optional[uuid.UUID] = None,
    ) -> str:
        base = generate_slug(title) or FALLBACK_SLUG
        return await ensure_unique_slug(db, base, exclude_post_id=exclude_post_id)

    # ── Serialisation ─────────────────────────────────────────────────

    @staticmethod
    async def to_out(
        db: AsyncSession, posts: list[Post], viewer: Optional[User] = None,
    ) -> list[PostOut]:
        """Attach tags, favorite counts and the viewer's favorite flag."""
        post_ids = [p.id for p in posts]
        if not post_ids:
            return []

        tags = await get_tag_names(db, post_ids)

        counts_result = await db.execute(
            select(PostFavorite.post_id, func.count())
            .where(PostFavorite.post_id.in_(post_ids))
            .group_by(PostFavorite.post_id)
        )
        counts = dict(counts_result.all())

        favorited: set[uuid.UUID] = set()
        if viewer is not None:
            fav_result = await db.execute(
                select(PostFavorite.post_id).where(
                    PostFavorite.user_id == viewer.id,
                    PostFavorite.post_id.in_(post_ids),
                )
            )
            favorited = set(fav_result.scalars().all())

        return [
            PostOut(
                id=p.id,
                slug=p.slug,
                title=p.title,
                description=p.description,
                content=p.content,
                is_published=p.is_published,
                tags=tags.get(p.id, []),
                author=AuthorBrief.model_validate(p.author),
                favorites_count=counts.get(p.id, 0),
                favorited=p.id in favorited,
                created_at=p.created_at,
                updated_at=p.updated_at,
            )
            for p in posts
        ]

    @staticmethod
    async def one_out(db: AsyncSession, post: Post, viewer: Optional[User] = None) -> PostOut:
        return (await PostService.to_out(db, [post], viewer))[0]

    # ── CRUD ──────────────────────────────────────────────────────────

    @staticmethod
    async def create_post(db: AsyncSession, author: User, body: PostCreate) -> Post:
        post = Post(
            user_id=author.id,
            slug=await PostService._unique_slug_for(db, body.title),
            title=body.title,
            description=body.description,
            content=body.content,
            is_published=False,
        )
        db.add(post)
        await db.flush()

        if body.tags:
            await sync_tags(db, post.id, body.tags)

        await db.refresh(post)
        logger.info("Post created: %s by %s", post.slug, author.email)
        return post

    @staticmethod
    async def list_posts(
        db: AsyncSession,
        filters: PostFilterParams,
        params: PaginationParams,
    ) -> tuple[list[Post], int]:
        """List posts newest first with optional tag / author / favorited / search filters."""
        conditions = []

        if filters.tag:
            conditions.append(
                Post.id.in_(
                    select(PostTag.post_id)
                    .join(Tag, Tag.id == PostTag.tag_id)
                    .where(Tag.name == filters.tag.strip().lower())
                )
            )
        if filters.author:
            conditions.append(
                Post.user_id.in_(
                    select(User.id).where(
                        or_(User.email == filters.author.lower(), User.name == filters.author)
                    )
                )
            )
        if filters.favorited:
            conditions.append(
                Post.id.in_(
                    select(PostFavorite.post_id)
                    .join(User, User.id == PostFavorite.user_id)
                    .where(User.email == filters.favorited.lower())
                )
            )
        if filters.search:
            pattern = f"%{filters.search}%"
            conditions.append(
                or_(
                    Post.title.ilike(pattern),
                    Post.description.ilike(pattern),
                    Post.content.ilike(pattern),
                )
            )

        count_stmt = select(func.count()).select_from(Post).where(*conditions)
        total = (await db.execute(count_stmt)).scalar() or 0

        stmt = (
            select(Post)
            .where(*conditions)
            .order_by(Post.created_at.desc())
            .offset(params.offset)
            .limit(params.limit)
        )
        result = await db.execute(stmt)
        return list(result.scalars().unique().all()), total

    @staticmethod
    async def update_post(db: AsyncSession, post: Post, body: PostUpdate) -> Post:
        """Apply a partial update; a new title gets a new slug."""
        if body.title is not None and body.title != post.title:
            post.slug = await PostService._unique_slug_for(db, body.title, exclude_post_id=post.id)
            post.title = body.title

        for field in ("description", "content", "is_published"):
            value = getattr(body, field)
            if value is not None:
                setattr(post, field, value)

        await db.flush()
        if body.tags is not None:
            await sync_tags(db, post.id, body.tags)

        await db.refresh(post)
        return post

    @staticmethod
    async def delete_post(db: AsyncSession, post: Post) -> None:
        await db.execute(delete(PostTag).where(PostTag.post_id == post.id))
        await db.execute(delete(PostFavorite).where(PostFavorite.post_id == post.id))
        await db.delete(post)
        await db.flush()
        logger.info("Post deleted: %s", post.slug)

    # ── Favorites ─────────────────────────────────────────────────────

    @staticmethod
    async def favorite(db: AsyncSession, post: Post, user: User) -> None:
        """Favorite *post*; repeating the call is a no-op."""
        existing = await db.get(PostFavorite, (user.id, post.id))
        if existing is None:
            db.add(PostFavorite(user_id=user.id, post_id=post.id))
            await db.flush()

    @staticmethod
    async def unfavorite(db: AsyncSession, post: Post, user: User) -> None:
        await db.execute(
            delete(PostFavorite).where(
                PostFavorite.user_id == user.id,
                PostFavorite.post_id == post.id,
            )
        )
        await db.flush()

    # ── Tags ──────────────────────────────────────────────────────────

    @staticmethod
    async def list_tags(db: AsyncSession) -> list[TagCount]:
        """All tags in use, most used first."""
        posts_count = func.count(PostTag.post_id)
        result = await db.execute(
            select(Tag.name, posts_count)
            .join(PostTag, PostTag.tag_id == Tag.id)
            .group_by(Tag.name)
            .order_by(posts_count.desc(), Tag.name)
        )
        return [TagCount(name=name, posts_count=count) for name, count in result.all()]

"""Slug generation and tag reconciliation for posts."""

from __future__ import annotations

import logging
import re
import secrets
import string
import uuid
from typing import Iterable, Optional

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from fluxstack.common.constants import SLUG_SUFFIX_LENGTH, SLUG_SUFFIX_MAX_TRIES
from fluxstack.common.exceptions import ConflictError
from fluxstack.posts.models import Post, PostTag, Tag

logger = logging.getLogger(__name__)

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


# ── Slugs ───────────────────────────────────────────────────────────

def generate_slug(title: str) -> str:
    """``"My First Post!"`` -> ``"my-first-post"``. May return ``""``."""
    return _NON_SLUG_CHARS.sub("-", title.lower()).strip("-")


def _random_suffix() -> str:
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(SLUG_SUFFIX_LENGTH))


async def _slug_exists(
    db: AsyncSession, slug: str, exclude_post_id: Optional[uuid.UUID],
) -> bool:
    stmt = select(Post.id).where(Post.slug == slug)
    if exclude_post_id is not None:
        stmt = stmt.where(Post.id != exclude_post_id)
    return (await db.execute(stmt.limit(1))).first() is not None


async def ensure_unique_slug(
    db: AsyncSession,
    base_slug: str,
    exclude_post_id: Optional[uuid.UUID] = None,
) -> str:
    """Return *base_slug*, or *base_slug* plus a random suffix on collision.

    Any stored slug equal to or starting with *base_slug* counts as a
    collision. A suffixed candidate is checked again and redrawn if taken.
    *exclude_post_id* ignores the post being renamed.
    """
    stmt = select(Post.slug).where(Post.slug.startswith(base_slug, autoescape=True))
    if exclude_post_id is not None:
        stmt = stmt.where(Post.id != exclude_post_id)
    if (await db.execute(stmt.limit(1))).first() is None:
        return base_slug

    for _ in range(SLUG_SUFFIX_MAX_TRIES):
        candidate = f"{base_slug}-{_random_suffix()}"
        if not await _slug_exists(db, candidate, exclude_post_id):
            return candidate

    raise ConflictError("slug", base_slug)


# ── Tags ────────────────────────────────────────────────────────────

def normalize_tag_names(tag_names: Iterable[str]) -> list[str]:
    """Trim, lower-case, drop blanks and collapse duplicates (order kept)."""
    seen: dict[str, None] = {}
    for name in tag_names:
        normalized = name.strip().lower()
        if normalized:
            seen.setdefault(normalized, None)
    return list(seen)


async def _resolve_tag_ids(db: AsyncSession, names: list[str]) -> list[uuid.UUID]:
    """Look up each tag by name, creating the missing ones."""
    result = await db.execute(select(Tag).where(Tag.name.in_(names)))
    existing = {tag.name: tag.id for tag in result.scalars().all()}

    tag_ids = []
    for name in names:
        tag_id = existing.get(name)
        if tag_id is None:
            tag = Tag(name=name)
            db.add(tag)
            await db.flush()
            tag_id = tag.id
            logger.debug("Created tag %s", name)
        tag_ids.append(tag_id)
    return tag_ids


async def sync_tags(db: AsyncSession, post_id: uuid.UUID, tag_names: list[str]) -> None:
    """Replace the post's tag set with *tag_names*.

    Runs inside the caller's transaction (``get_db`` per request): the delete
    and the inserts are committed or rolled back together.
    """
    await db.execute(delete(PostTag).where(PostTag.post_id == post_id))

    names = normalize_tag_names(tag_names)
    if not names:
        await db.flush()
        return

    tag_ids = await _resolve_tag_ids(db, names)
    await db.execute(
        insert(PostTag),
        [{"post_id": post_id, "tag_id": tag_id} for tag_id in tag_ids],
    )
    await db.flush()


async def get_tag_names(db: AsyncSession, post_ids: list[uuid.UUID]) -> dict[uuid.UUID, list[str]]:
    """Map each post id to its sorted tag names."""
    if not post_ids:
        return {}
    result = await db.execute(
        select(PostTag.post_id, Tag.name)
        .join(Tag, Tag.id == PostTag.tag_id)
        .where(PostTag.post_id.in_(post_ids))
        .order_by(Tag.name)
    )
    names: dict[uuid.UUID, list[str]] = {pid: [] for pid in post_ids}
    for post_id, name in result.all():
        names[post_id].append(name)
    return names

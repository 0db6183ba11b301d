"""Dashboard service — per-user aggregates over posts, favorites and sessions."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fluxstack.auth.models import User, UserSession
from fluxstack.dashboard.schemas import (
    ActivityItem,
    DashboardActivityResponse,
    DashboardOverviewResponse,
    DashboardStats,
    DashboardStatsResponse,
    QuickStats,
)
from fluxstack.posts.models import Post, PostFavorite, PostTag

# created_at and updated_at are stamped separately on insert
_EDIT_THRESHOLD = timedelta(seconds=1)


class DashboardService:
    """Aggregation queries for dashboard widgets."""

    @staticmethod
    async def _post_counts(db: AsyncSession, user: User) -> tuple[int, int]:
        """Return (total_posts, published_posts) for *user*."""
        result = await db.execute(
            select(func.count(), func.count().filter(Post.is_published.is_(True)))
            .select_from(Post)
            .where(Post.user_id == user.id)
        )
        total, published = result.one()
        return total or 0, published or 0

    # ── Stats ─────────────────────────────────────────────────────────

    @staticmethod
    async def get_stats(db: AsyncSession, user: User) -> DashboardStatsResponse:
        total, published = await DashboardService._post_counts(db, user)

        favorites_received = (
            await db.execute(
                select(func.count())
                .select_from(PostFavorite)
                .join(Post, Post.id == PostFavorite.post_id)
                .where(Post.user_id == user.id)
            )
        ).scalar() or 0

        tags_used = (
            await db.execute(
                select(func.count(distinct(PostTag.tag_id)))
                .join(Post, Post.id == PostTag.post_id)
                .where(Post.user_id == user.id)
            )
        ).scalar() or 0

        last_activity = (
            await db.execute(
                select(func.max(Post.updated_at)).where(Post.user_id == user.id)
            )
        ).scalar()

        return DashboardStatsResponse(
            user_id=user.id,
            stats=DashboardStats(
                total_posts=total,
                published_posts=published,
                draft_posts=total - published,
                favorites_received=favorites_received,
                tags_used=tags_used,
            ),
            last_activity=last_activity,
        )

    # ── Activity ──────────────────────────────────────────────────────

    @staticmethod
    async def get_activity(
        db: AsyncSession, user: User, limit: int = 20,
    ) -> DashboardActivityResponse:
        """Recent sign-ins and post events, newest first."""
        activities: list[ActivityItem] = []

        sessions = await db.execute(
            select(UserSession.created_at, UserSession.ip_address)
            .where(UserSession.user_id == user.id)
            .order_by(UserSession.created_at.desc())
            .limit(limit)
        )
        for created_at, ip in sessions.all():
            activities.append(
                ActivityItem(
                    type="login",
                    timestamp=created_at,
                    details=f"Signed in from {ip}" if ip else "Signed in",
                )
            )

        posts = await db.execute(
            select(Post.title, Post.created_at, Post.updated_at)
            .where(Post.user_id == user.id)
            .order_by(Post.updated_at.desc())
            .limit(limit)
        )
        for title, created_at, updated_at in posts.all():
            activities.append(
                ActivityItem(type="post_created", timestamp=created_at, details=f"Created '{title}'")
            )
            if updated_at and created_at and updated_at - created_at > _EDIT_THRESHOLD:
                activities.append(
                    ActivityItem(type="post_updated", timestamp=updated_at, details=f"Updated '{title}'")
                )

        activities.sort(key=lambda a: _as_utc(a.timestamp), reverse=True)
        return DashboardActivityResponse(user_id=user.id, activities=activities[:limit])

    # ── Overview ──────────────────────────────────────────────────────

    @staticmethod
    async def get_overview(db: AsyncSession, user: User) -> DashboardOverviewResponse:
        total, published = await DashboardService._post_counts(db, user)

        favorites_given = (
            await db.execute(
                select(func.count()).select_from(PostFavorite).where(PostFavorite.user_id == user.id)
            )
        ).scalar() or 0

        active_sessions = (
            await db.execute(
                select(func.count())
                .select_from(UserSession)
                .where(
                    UserSession.user_id == user.id,
                    UserSession.is_revoked.is_(False),
                    UserSession.expires_at > datetime.now(timezone.utc),
                )
            )
        ).scalar() or 0

        return DashboardOverviewResponse(
            welcome=f"Welcome back, {user.name or user.email}!",
            quick_stats=QuickStats(
                draft_posts=total - published,
                published_posts=published,
                favorites_given=favorites_given,
                active_sessions=active_sessions,
            ),
        )


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; treat them as UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

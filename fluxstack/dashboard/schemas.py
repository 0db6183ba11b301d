"""Dashboard Pydantic schemas."""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class DashboardStats(BaseModel):
    total_posts: int
    published_posts: int
    draft_posts: int
    favorites_received: int
    tags_used: int


class DashboardStatsResponse(BaseModel):
    user_id: uuid.UUID
    stats: DashboardStats
    last_activity: Optional[datetime] = None


class ActivityItem(BaseModel):
    type: str  # login | post_created | post_updated
    timestamp: datetime
    details: str


class DashboardActivityResponse(BaseModel):
    user_id: uuid.UUID
    activities: List[ActivityItem]


class QuickStats(BaseModel):
    draft_posts: int
    published_posts: int
    favorites_given: int
    active_sessions: int


class DashboardOverviewResponse(BaseModel):
    welcome: str
    quick_stats: QuickStats

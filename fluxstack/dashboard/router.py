"""Dashboard router — read-only widgets for the signed-in user."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fluxstack.auth.dependencies import get_current_user
from fluxstack.auth.models import User
from fluxstack.common.responses import SuccessResponse, success
from fluxstack.dashboard.schemas import (
    DashboardActivityResponse,
    DashboardOverviewResponse,
    DashboardStatsResponse,
)
from fluxstack.dashboard.service import DashboardService
from fluxstack.database import get_db

router = APIRouter()


# ── GET /stats ──────────────────────────────────────────────────────

@router.get("/stats", response_model=SuccessResponse[DashboardStatsResponse])
async def dashboard_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Post, favorite and tag counts for the caller."""
    return success(await DashboardService.get_stats(db, user))


# ── GET /activity ───────────────────────────────────────────────────

@router.get("/activity", response_model=SuccessResponse[DashboardActivityResponse])
async def dashboard_activity(
    limit: int = Query(20, ge=1, le=50, description="Number of recent activities"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return success(await DashboardService.get_activity(db, user, limit=limit))


# ── GET /overview ───────────────────────────────────────────────────

@router.get("/overview", response_model=SuccessResponse[DashboardOverviewResponse])
async def dashboard_overview(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return success(await DashboardService.get_overview(db, user))

"""Pagination parameters and metadata for list endpoints."""


import math
from typing import Optional

from fastapi import Query
from pydantic import BaseModel

from fluxstack.common.constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


# ── FastAPI dependency ──────────────────────────────────────────────

class PaginationParams:
    """Inject via ``Depends(PaginationParams)`` on any list endpoint."""

    def __init__(
        self,
        page: int = Query(default=DEFAULT_PAGE, ge=1, description="Page number (1-indexed)"),
        limit: int = Query(
            default=DEFAULT_PAGE_SIZE,
            ge=1,
            le=MAX_PAGE_SIZE,
            description=f"Items per page (max {MAX_PAGE_SIZE})",
        ),
        offset: Optional[int] = Query(
            default=None,
            ge=0,
            description="Explicit row offset; overrides the one derived from page",
        ),
    ) -> None:
        self.page = page
        self.limit = limit
        self._offset = offset

    @property
    def offset(self) -> int:
        if self._offset is not None:
            return self._offset
        return (self.page - 1) * self.limit


# ── Pydantic response model ─────────────────────────────────────────

class PaginationMeta(BaseModel):
    """Pagination block embedded in ``meta`` of every paginated response."""

    page: int
    limit: int
    total: int
    total_pages: int


def build_pagination_meta(total: int, params: PaginationParams) -> PaginationMeta:
    return PaginationMeta(
        page=params.page,
        limit=params.limit,
        total=total,
        total_pages=math.ceil(total / params.limit) if total else 0,
    )

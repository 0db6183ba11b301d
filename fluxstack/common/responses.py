"""Standard success envelopes: ``{"success": true, "data": ..., "meta"?: ...}``."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Generic, Literal, Optional, Sequence, TypeVar

from pydantic import BaseModel

from fluxstack.common.pagination import PaginationMeta

T = TypeVar("T")


class ResponseMeta(BaseModel):
    timestamp: datetime
    pagination: Optional[PaginationMeta] = None


class SuccessResponse(BaseModel, Generic[T]):
    success: Literal[True] = True
    data: T


class PaginatedResponse(BaseModel, Generic[T]):
    success: Literal[True] = True
    data: Sequence[T]
    meta: ResponseMeta


class MessageOut(BaseModel):
    message: str


class ErrorBody(BaseModel):
    code: str
    message: str
    details: Optional[dict] = None


class ErrorResponse(BaseModel):
    """Documentation model for the error envelope built in exceptions.py."""

    success: Literal[False] = False
    error: ErrorBody


def success(data: T) -> SuccessResponse[T]:
    return SuccessResponse(data=data)


def paginated(data: Sequence[T], pagination: PaginationMeta) -> PaginatedResponse[T]:
    return PaginatedResponse(
        data=data,
        meta=ResponseMeta(
            timestamp=datetime.now(timezone.utc),
            pagination=pagination,
        ),
    )


def message(text: str) -> SuccessResponse[MessageOut]:
    return SuccessResponse(data=MessageOut(message=text))

"""Common module — shared utilities for fluxstack."""

from fluxstack.common.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    ErrorCode,
)
from fluxstack.common.exceptions import (
    AccountLockedException,
    AppException,
    ConflictError,
    ForbiddenException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
    register_exception_handlers,
)
from fluxstack.common.pagination import (
    PaginationMeta,
    PaginationParams,
    build_pagination_meta,
)
from fluxstack.common.responses import (
    MessageOut,
    PaginatedResponse,
    SuccessResponse,
    message,
    paginated,
    success,
)

__all__ = [
    # Constants
    "ErrorCode",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AccountLockedException",
    "AppException",
    "ConflictError",
    "ForbiddenException",
    "NotFoundException",
    "UnauthorizedException",
    "ValidationException",
    "register_exception_handlers",
    # Pagination
    "PaginationMeta",
    "PaginationParams",
    "build_pagination_meta",
    # Envelopes
    "MessageOut",
    "PaginatedResponse",
    "SuccessResponse",
    "message",
    "paginated",
    "success",
]

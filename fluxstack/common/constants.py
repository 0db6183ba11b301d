"""Enums and constants shared across fluxstack modules."""

from __future__ import annotations

import enum


# ── Error codes ─────────────────────────────────────────────────────

class ErrorCode(str, enum.Enum):
    # Auth
    account_locked = "ACCOUNT_LOCKED"
    unauthorized = "UNAUTHORIZED"
    forbidden = "FORBIDDEN"

    # Client
    not_found = "NOT_FOUND"
    conflict = "CONFLICT"
    validation_error = "VALIDATION_ERROR"
    rate_limit_exceeded = "RATE_LIMIT_EXCEEDED"
    http_error = "HTTP_ERROR"

    # Server
    internal_server = "INTERNAL_SERVER_ERROR"


# ── Brute-force protection ──────────────────────────────────────────

MAX_LOGIN_ATTEMPTS = 5
LOCKOUT_DURATION_MINUTES = 15
RESET_DURATION_MINUTES = 5
UNKNOWN_IDENTIFIER = "unknown"

# ── Rate limiting ───────────────────────────────────────────────────

RATE_LIMIT_WINDOW_SECONDS = 60
RATE_LIMIT_MAX_REQUESTS_PRODUCTION = 100
RATE_LIMIT_MAX_REQUESTS_DEVELOPMENT = 50

# ── Sessions / passwords ────────────────────────────────────────────

SESSION_EXPIRES_DAYS = 7
SESSION_COOKIE_NAME = "fluxstack.session_token"
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128

# ── Posts ───────────────────────────────────────────────────────────

SLUG_SUFFIX_LENGTH = 6
SLUG_SUFFIX_MAX_TRIES = 10
FALLBACK_SLUG = "post"
MAX_TAGS_PER_POST = 10
TAG_NAME_MAX = 50

# ── String limits ───────────────────────────────────────────────────

EMAIL_MAX = 255
NAME_MAX = 100
DESCRIPTION_MAX = 500
TITLE_MIN = 3
TITLE_MAX = 255

# ── Pagination ──────────────────────────────────────────────────────

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

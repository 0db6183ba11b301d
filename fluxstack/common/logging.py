"""Logging setup and request logging middleware."""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s — %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

request_logger = logging.getLogger("fluxstack.request")


def configure_logging(level: str = "info") -> None:
    """Configure the root logger once for the whole process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )


def add_request_logging(app: FastAPI) -> None:
    """Log method, path, status and duration of every request."""

    @app.middleware("http")
    async def _log_request(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        request_logger.info(
            "%s %s -> %d (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response

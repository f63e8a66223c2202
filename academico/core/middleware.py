"""CORS, request-id and access-log middleware."""

import uuid
import time
import logging

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from academico.core.config import settings

logger = logging.getLogger("academico")

# Responses that may carry a session token or a user's dashboard
_NO_STORE_PREFIXES = ("/api/auth", "/pages")
_QUIET_PATHS = frozenset({"/api/health", "/api/admin/health"})


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id (reusing the caller's X-Request-Id) and log it."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
        request.state.request_id = request_id
        start_time = time.perf_counter()

        response: Response = await call_next(request)

        duration = round((time.perf_counter() - start_time) * 1000, 2)
        path = request.url.path
        response.headers["X-Request-Id"] = request_id
        if path.startswith(_NO_STORE_PREFIXES):
            response.headers["Cache-Control"] = "no-store"

        if path not in _QUIET_PATHS:
            logger.info(
                "[%s] %s %s %s %sms",
                request_id[:8],
                request.method,
                path,
                response.status_code,
                duration,
            )
        return response


def setup_middleware(app: FastAPI) -> None:
    """CORS for the configured front-ends, then request ids."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Session-Token", "X-Request-Id"],
    )
    app.add_middleware(RequestIdMiddleware)

"""CORS and request-id/timing middleware."""

import uuid
import time
import logging

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from photoapp.core.config import settings
from photoapp.services.audit_service import get_client_ip

logger = logging.getLogger("photoapp.http")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id (reusing the caller's X-Request-Id) and log it."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()

        response: Response = await call_next(request)

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers["X-Request-Id"] = request_id
        response.headers["X-Response-Time-Ms"] = str(elapsed_ms)

        logger.log(
            logging.WARNING if response.status_code >= 500 else logging.INFO,
            "%s %s -> %s in %sms from %s [%s]",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            get_client_ip(request) or "-",
            request_id,
        )
        return response


def setup_middleware(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id", "X-Response-Time-Ms"],
    )
    app.add_middleware(RequestIdMiddleware)

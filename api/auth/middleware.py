"""
Static-token gate applied ahead of every route.
"""

from __future__ import annotations

import logging
import secrets

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


def token_matches(presented: str | None, expected: str) -> bool:
    if presented is None:
        return False
    return secrets.compare_digest(presented.encode("utf-8"), expected.encode("utf-8"))


class StaticTokenMiddleware(BaseHTTPMiddleware):
    """
    Reject the request with 401 unless `Authorization` is exactly `token`.

    The header is compared verbatim: no scheme prefix is stripped.
    """

    def __init__(self, app: ASGIApp, token: str) -> None:
        super().__init__(app)
        if not token:
            raise ValueError("Auth token must not be empty.")
        self._token = token

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not token_matches(request.headers.get("authorization"), self._token):
            logger.warning("auth_rejected method=%s path=%s", request.method, request.url.path)
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"message": "Unauthorized"},
            )
        return await call_next(request)

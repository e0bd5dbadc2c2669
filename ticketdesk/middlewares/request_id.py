from __future__ import annotations

import logging
import re
import time
from contextvars import ContextVar
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
# Client-supplied ids are echoed into logs and headers, so only short opaque tokens are kept.
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
# Log correlation only; services receive the acting user as a parameter.
principal_ctx_var: ContextVar[str | None] = ContextVar("principal", default=None)
logger = logging.getLogger("ticketdesk.request")


def resolve_request_id(supplied: str | None) -> str:
    """Reuse the caller's id when it is a safe token, otherwise mint a new one."""

    if supplied and _VALID_REQUEST_ID.match(supplied):
        return supplied
    return uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with a correlation id and write one ``request.completed`` line.

    Server errors are logged at WARNING so they stand out from routine traffic.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request_token = request_id_ctx_var.set(request_id)
        principal_token = principal_ctx_var.set(None)
        request.state.request_id = request_id
        start = time.perf_counter()
        try:
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers.setdefault("X-Response-Time", f"{duration_ms:.2f}ms")
            data = {
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": duration_ms,
            }
            principal = getattr(request.state, "principal", None)
            if principal:
                data["principal"] = principal
            level = logging.WARNING if response.status_code >= 500 else logging.INFO
            logger.log(level, "request.completed", extra={"extra_data": data})
            return response
        finally:
            request_id_ctx_var.reset(request_token)
            principal_ctx_var.reset(principal_token)

from __future__ import annotations

from typing import Sequence

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .request_id import RequestIdMiddleware, principal_ctx_var, request_id_ctx_var
from .security_headers import SecurityHeadersMiddleware


def install_middlewares(app: FastAPI, allowed_origins: Sequence[str] = ()) -> None:
    """Add the HTTP middleware stack; the last one added runs outermost."""

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)
    if allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(allowed_origins),
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
            expose_headers=["X-Request-ID"],
        )


__all__ = [
    "RequestIdMiddleware",
    "SecurityHeadersMiddleware",
    "install_middlewares",
    "request_id_ctx_var",
    "principal_ctx_var",
]

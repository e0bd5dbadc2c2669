from __future__ import annotations

from fastapi import Depends, Header, Request
from fastapi.security.utils import get_authorization_scheme_param
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ..core.errors import Unauthenticated
from ..core.security import TokenError, decode_token
from ..db.session import get_db
from ..middlewares import principal_ctx_var
from ..models.user import User


def _load_user(db: Session, credentials: str) -> User:
    try:
        payload = decode_token(credentials, verify_type="access")
    except TokenError as exc:
        raise Unauthenticated(str(exc)) from exc
    user = db.get(User, payload.user_id)
    if user is None:
        raise Unauthenticated("User not found")
    return user


async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to a live user row.

    The returned user is handed to the services as an explicit argument. The
    principal is set here, on the request task, so the sync handlers that run
    afterwards in the threadpool inherit it in their log lines.
    """

    scheme, credentials = get_authorization_scheme_param(authorization)
    if not authorization or scheme.lower() != "bearer" or not credentials:
        raise Unauthenticated("Access token required")
    user = await run_in_threadpool(_load_user, db, credentials)
    principal = f"user:{user.id}"
    principal_ctx_var.set(principal)
    request.state.principal = principal
    return user

"""Application wiring for the Ticketdesk API.

Configuration, database setup, middleware, routers and error handling are
assembled here on import so ``ticketdesk.app`` is ready for uvicorn or a
test client.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.errors import (
    ServiceError,
    http_exception_handler,
    service_error_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from .db.session import Base, engine
from .middlewares import install_middlewares

# Importing the models registers them with the metadata used by create_all.
from .models import comment as _comment  # noqa: F401
from .models import label as _label  # noqa: F401
from .models import project as _project  # noqa: F401
from .models import ticket as _ticket  # noqa: F401
from .models import user as _user  # noqa: F401

app = FastAPI(title=settings.APP_NAME)

Base.metadata.create_all(bind=engine)

# ---------- Middleware ----------
install_middlewares(app, settings.ALLOWED_ORIGINS)

# ---------- Routers ----------
from .routers import api_auth as api_auth_router  # noqa: E402

app.include_router(api_auth_router.router)

from .routers import api_users as api_users_router  # noqa: E402

app.include_router(api_users_router.router)

from .routers import api_projects as api_projects_router  # noqa: E402

app.include_router(api_projects_router.router)

from .routers import api_tickets as api_tickets_router  # noqa: E402

app.include_router(api_tickets_router.router)

from .routers import api_comments as api_comments_router  # noqa: E402

app.include_router(api_comments_router.router)

from .routers import api_labels as api_labels_router  # noqa: E402

app.include_router(api_labels_router.router)

# ---------- Exception handling ----------
app.add_exception_handler(ServiceError, service_error_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["app"]

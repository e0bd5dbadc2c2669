"""Pagination and free-text search helpers shared by the list endpoints."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from ..core.config import settings
from ..core.errors import ValidationFailed


@dataclass
class PageRequest:
    page: int = 1
    limit: int = settings.DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValidationFailed("page must be at least 1")
        if not 1 <= self.limit <= settings.MAX_PAGE_SIZE:
            raise ValidationFailed(f"limit must be between 1 and {settings.MAX_PAGE_SIZE}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class Page:
    items: list[Any] = field(default_factory=list)
    page: int = 1
    limit: int = settings.DEFAULT_PAGE_SIZE
    total: int = 0

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def meta(self) -> dict[str, int]:
        return {"page": self.page, "limit": self.limit, "total": self.total, "pages": self.pages}


def paginate(db: Session, stmt: Select, request: PageRequest) -> Page:
    """Run ``stmt`` for one page and count the full result set alongside it."""

    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = db.execute(count_stmt).scalar_one()
    rows = db.execute(stmt.limit(request.limit).offset(request.offset)).scalars().unique().all()
    return Page(items=list(rows), page=request.page, limit=request.limit, total=total)


def search_clause(term: str | None, columns: Sequence[Any]):
    """Case-insensitive substring match of ``term`` against any of ``columns``."""

    cleaned = (term or "").strip()
    if not cleaned:
        return None
    escaped = cleaned.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    return or_(*(func.lower(column).like(pattern, escape="\\") for column in columns))


__all__ = ["Page", "PageRequest", "paginate", "search_clause"]

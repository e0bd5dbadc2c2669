from __future__ import annotations

from typing import Optional

from pydantic import Field

from .common import ApiModel, ApiOut
from .user import UserSummary


class CommentCreate(ApiModel):
    content: str = Field(..., min_length=1, max_length=1000)
    ticket_id: int


class CommentUpdate(ApiModel):
    content: str = Field(..., min_length=1, max_length=1000)


class CommentOut(ApiOut):
    id: int
    content: str
    ticket_id: int
    user_id: int
    created_at: str
    updated_at: str
    user: UserSummary


class CommentResponse(ApiModel):
    message: Optional[str] = None
    comment: CommentOut


class CommentListResponse(ApiModel):
    comments: list[CommentOut]

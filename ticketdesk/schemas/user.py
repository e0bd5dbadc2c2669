"""Response DTOs for user accounts.

None of these carry ``password_hash``; every user payload leaving the API is
built from one of them.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, HttpUrl

from ..core.choices import UserRole
from .common import ApiModel, ApiOut, Pagination


class UserSummary(ApiOut):
    id: int
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None


class UserOut(UserSummary):
    email: str
    role: UserRole
    created_at: str
    updated_at: str


class UserListItem(UserOut):
    assigned_ticket_count: int = 0
    created_ticket_count: int = 0


class UserSearchResult(UserSummary):
    role: UserRole


class UserUpdate(ApiModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    avatar: Optional[HttpUrl] = None


class UserRoleUpdate(ApiModel):
    role: UserRole


class UserStats(ApiOut):
    assigned_tickets: int
    created_tickets: int
    project_count: int
    status_breakdown: dict[str, int] = Field(default_factory=dict)


class UserResponse(ApiModel):
    message: Optional[str] = None
    user: UserListItem


class UserListResponse(ApiModel):
    users: list[UserListItem]
    pagination: Pagination


class UserSearchResponse(ApiModel):
    users: list[UserSearchResult]


class UserStatsResponse(ApiModel):
    stats: UserStats

"""Pydantic schemas that describe project and membership payloads."""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from ..core.choices import ProjectRoleLevel, ProjectStatus
from .common import ApiModel, ApiOut
from .ticket import TicketOut
from .user import UserSummary


class ProjectCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)


class ProjectUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    status: Optional[ProjectStatus] = None


class MemberCreate(ApiModel):
    user_id: int
    role: ProjectRoleLevel = ProjectRoleLevel.MEMBER


class MemberRoleUpdate(ApiModel):
    role: ProjectRoleLevel


class MemberOut(ApiOut):
    id: int
    user_id: int
    project_id: int
    role: ProjectRoleLevel
    created_at: str
    user: UserSummary


class ProjectOut(ApiOut):
    id: int
    name: str
    description: Optional[str] = None
    status: ProjectStatus
    created_by: int
    created_at: str
    updated_at: str
    members: list[MemberOut] = Field(default_factory=list)
    ticket_count: int = 0


class ProjectDetail(ProjectOut):
    tickets: list[TicketOut] = Field(default_factory=list)


class ProjectResponse(ApiModel):
    message: Optional[str] = None
    project: ProjectDetail


class ProjectListResponse(ApiModel):
    projects: list[ProjectOut]


class MemberResponse(ApiModel):
    message: str
    member: MemberOut

"""Request and response schemas for tickets."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Union

from pydantic import Field

from ..core.choices import TicketPriority, TicketStatus, TicketType
from .comment import CommentOut
from .common import ApiModel, ApiOut, Pagination
from .label import LabelOut
from .user import UserSummary

DueDate = Union[datetime, date]


class TicketCreate(ApiModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    priority: TicketPriority = TicketPriority.MEDIUM
    type: TicketType = TicketType.TASK
    project_id: int
    assigned_to: Optional[int] = None
    due_date: Optional[DueDate] = None


class TicketUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, min_length=1, max_length=2000)
    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None
    type: Optional[TicketType] = None
    assigned_to: Optional[int] = None
    due_date: Optional[DueDate] = None


class ProjectBrief(ApiOut):
    id: int
    name: str


class TicketOut(ApiOut):
    id: int
    title: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    type: TicketType
    project_id: int
    assigned_to: Optional[int] = None
    created_by: int
    due_date: Optional[str] = None
    created_at: str
    updated_at: str
    project: ProjectBrief
    assignee: Optional[UserSummary] = None
    creator: UserSummary
    labels: list[LabelOut] = Field(default_factory=list)
    comment_count: int = 0


class TicketDetail(TicketOut):
    comments: list[CommentOut] = Field(default_factory=list)


class TicketResponse(ApiModel):
    message: Optional[str] = None
    ticket: TicketDetail


class TicketListResponse(ApiModel):
    tickets: list[TicketOut]
    pagination: Pagination

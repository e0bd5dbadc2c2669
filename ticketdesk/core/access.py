"""Project-scoped access control.

Every project, ticket and comment operation funnels through this module. The
generic rule is a rank comparison between the caller's :class:`ProjectRole`
and the level the operation requires; the remaining helpers layer the
resource-specific rules on top (creator protection, the viewer status rule
and comment authorship).

Nothing here writes to the database. Functions either return the decision or
raise :class:`AccessDenied` for the caller to surface as a 403.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from ..models.comment import Comment
from ..models.project import Project, ProjectRole
from ..models.ticket import Ticket
from .choices import ProjectRoleLevel
from .errors import AccessDenied, ValidationFailed

NO_ACCESS_MESSAGE = "Project access denied"
INSUFFICIENT_MESSAGE = "Insufficient project permissions"

# Minimum levels for project-wide operations.
READ_LEVEL = ProjectRoleLevel.VIEWER
UPDATE_PROJECT_LEVEL = ProjectRoleLevel.ADMIN
MANAGE_MEMBERS_LEVEL = ProjectRoleLevel.ADMIN
DELETE_PROJECT_LEVEL = ProjectRoleLevel.OWNER
DELETE_TICKET_LEVEL = ProjectRoleLevel.ADMIN
MODERATE_COMMENTS_LEVEL = ProjectRoleLevel.ADMIN


@dataclass(frozen=True)
class Decision:
    allowed: bool
    role: ProjectRoleLevel | None = None
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


def find_role(db: Session, user_id: int, project_id: int) -> ProjectRole | None:
    stmt = select(ProjectRole).where(
        ProjectRole.user_id == user_id,
        ProjectRole.project_id == project_id,
    )
    return db.execute(stmt).scalars().first()


def decide(role: ProjectRoleLevel | None, required: ProjectRoleLevel) -> Decision:
    """Pure rank comparison: allow iff a role exists and ranks at least ``required``."""

    if role is None:
        return Decision(False, None, NO_ACCESS_MESSAGE)
    if role >= required:
        return Decision(True, role)
    return Decision(False, role, INSUFFICIENT_MESSAGE)


def evaluate(db: Session, user_id: int, project_id: int, required: ProjectRoleLevel) -> Decision:
    membership = find_role(db, user_id, project_id)
    return decide(membership.level if membership else None, required)


def check(
    db: Session,
    user_id: int,
    project_id: int,
    required: ProjectRoleLevel = READ_LEVEL,
    *,
    message: str | None = None,
) -> ProjectRole:
    """Return the caller's membership or raise :class:`AccessDenied`.

    ``message`` replaces the default text when the caller is a member whose
    rank is too low; a missing membership always reads "Project access denied".
    """

    membership = find_role(db, user_id, project_id)
    decision = decide(membership.level if membership else None, required)
    if not decision:
        if membership is None or message is None:
            raise AccessDenied(decision.reason)
        raise AccessDenied(message)
    return membership


def ensure_member_mutable(project: Project, target_user_id: int, *, action: str) -> None:
    """The creator keeps OWNER for as long as they remain the creator."""

    if project.created_by == target_user_id:
        if action == "remove":
            raise ValidationFailed("Cannot remove project owner")
        raise ValidationFailed("Cannot change project owner role")


def can_change_ticket_status(role: ProjectRoleLevel, ticket: Ticket, user_id: int) -> bool:
    if role > ProjectRoleLevel.VIEWER:
        return True
    return ticket.assigned_to is not None and ticket.assigned_to == user_id


def can_modify_comment(role: ProjectRoleLevel, comment: Comment, user_id: int) -> bool:
    return comment.user_id == user_id or role >= MODERATE_COMMENTS_LEVEL


def can_delete_ticket(role: ProjectRoleLevel) -> bool:
    return role >= DELETE_TICKET_LEVEL


def member_project_ids(user_id: int) -> Select:
    """Subquery of the project ids ``user_id`` holds any role in."""

    return select(ProjectRole.project_id).where(ProjectRole.user_id == user_id)


__all__ = [
    "DELETE_PROJECT_LEVEL",
    "DELETE_TICKET_LEVEL",
    "Decision",
    "MANAGE_MEMBERS_LEVEL",
    "MODERATE_COMMENTS_LEVEL",
    "READ_LEVEL",
    "UPDATE_PROJECT_LEVEL",
    "can_change_ticket_status",
    "can_delete_ticket",
    "can_modify_comment",
    "check",
    "decide",
    "ensure_member_mutable",
    "evaluate",
    "find_role",
    "member_project_ids",
]

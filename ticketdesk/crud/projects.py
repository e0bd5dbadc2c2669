"""CRUD helpers for projects and their member roles.

Every function takes the acting user explicitly and checks access through
:mod:`ticketdesk.core.access` before touching the database.
"""

from __future__ import annotations

import logging

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session, selectinload

from ..core import access
from ..core.choices import ASSIGNABLE_PROJECT_ROLES, ProjectRoleLevel, ProjectStatus
from ..core.errors import Conflict, NotFound, ValidationFailed
from ..core.logging import log_event
from ..db.session import commit_or_conflict
from ..models.project import Project, ProjectRole
from ..models.ticket import Ticket
from ..models.user import User
from ..services.clock import utcnow_iso
from .users import get_user_by_id

logger = logging.getLogger("ticketdesk.crud.projects")

DUPLICATE_MEMBER_MESSAGE = "User is already a member of this project"


def _project_stmt():
    return select(Project).options(
        selectinload(Project.members).selectinload(ProjectRole.user),
    )


def _load_project(db: Session, project_id: int) -> Project:
    project = db.execute(_project_stmt().where(Project.id == project_id)).scalars().first()
    if not project:
        raise NotFound("Project not found")
    return project


def _assignable_role(role: ProjectRoleLevel | str) -> ProjectRoleLevel:
    try:
        level = ProjectRoleLevel(role)
    except ValueError as exc:
        raise ValidationFailed("Invalid project role") from exc
    if level not in ASSIGNABLE_PROJECT_ROLES:
        allowed = ", ".join(item.value for item in ASSIGNABLE_PROJECT_ROLES)
        raise ValidationFailed(f"role must be one of {allowed}")
    return level


def _validate_name(value: object) -> str:
    name = value.strip() if isinstance(value, str) else ""
    if not name:
        raise ValidationFailed("name is required")
    if len(name) > 100:
        raise ValidationFailed("name must be at most 100 characters")
    return name


def _validate_description(value: object) -> str | None:
    description = value.strip() if isinstance(value, str) else ""
    if len(description) > 500:
        raise ValidationFailed("description must be at most 500 characters")
    return description or None


def ticket_counts(db: Session, project_ids: list[int]) -> dict[int, int]:
    if not project_ids:
        return {}
    rows = db.execute(
        select(Ticket.project_id, func.count(Ticket.id))
        .where(Ticket.project_id.in_(project_ids))
        .group_by(Ticket.project_id)
    ).all()
    counts = dict(rows)
    return {pid: counts.get(pid, 0) for pid in project_ids}


def list_projects(db: Session, actor: User) -> list[Project]:
    stmt = (
        _project_stmt()
        .where(Project.id.in_(access.member_project_ids(actor.id)))
        .order_by(desc(Project.updated_at), desc(Project.id))
    )
    return list(db.execute(stmt).scalars().unique().all())


def get_project(db: Session, actor: User, project_id: int) -> Project:
    access.check(db, actor.id, project_id, access.READ_LEVEL)
    return _load_project(db, project_id)


def create_project(db: Session, actor: User, payload: dict) -> Project:
    now = utcnow_iso()
    project = Project(
        name=_validate_name(payload.get("name")),
        description=_validate_description(payload.get("description")),
        status=ProjectStatus.ACTIVE.value,
        created_by=actor.id,
        created_at=now,
        updated_at=now,
    )
    project.members.append(
        ProjectRole(user_id=actor.id, role=ProjectRoleLevel.OWNER.value, created_at=now)
    )
    db.add(project)
    db.commit()
    log_event(logger, "project.created", project_id=project.id, by=actor.id)
    return _load_project(db, project.id)


def update_project(db: Session, actor: User, project_id: int, payload: dict) -> Project:
    access.check(db, actor.id, project_id, access.UPDATE_PROJECT_LEVEL)
    project = _load_project(db, project_id)
    if "name" in payload:
        project.name = _validate_name(payload.get("name"))
    if "description" in payload:
        project.description = _validate_description(payload.get("description"))
    if payload.get("status") is not None:
        try:
            project.status = ProjectStatus(payload["status"]).value
        except ValueError as exc:
            raise ValidationFailed("Invalid project status") from exc
    project.updated_at = utcnow_iso()
    db.commit()
    log_event(logger, "project.updated", project_id=project.id, by=actor.id)
    return _load_project(db, project.id)


def delete_project(db: Session, actor: User, project_id: int) -> None:
    access.check(db, actor.id, project_id, access.DELETE_PROJECT_LEVEL)
    project = _load_project(db, project_id)
    db.delete(project)
    db.commit()
    log_event(logger, "project.deleted", project_id=project_id, by=actor.id)


def get_member(db: Session, project_id: int, user_id: int) -> ProjectRole | None:
    return access.find_role(db, user_id, project_id)


def add_member(
    db: Session,
    actor: User,
    project_id: int,
    user_id: int,
    role: ProjectRoleLevel | str = ProjectRoleLevel.MEMBER,
) -> ProjectRole:
    access.check(db, actor.id, project_id, access.MANAGE_MEMBERS_LEVEL)
    level = _assignable_role(role)
    project = _load_project(db, project_id)
    if not get_user_by_id(db, user_id):
        raise NotFound("User not found")
    if get_member(db, project.id, user_id):
        raise Conflict(DUPLICATE_MEMBER_MESSAGE)
    membership = ProjectRole(
        user_id=user_id,
        project_id=project.id,
        role=level.value,
        created_at=utcnow_iso(),
    )
    db.add(membership)
    commit_or_conflict(db, DUPLICATE_MEMBER_MESSAGE)
    db.refresh(membership)
    log_event(
        logger, "member.added", project_id=project.id, user_id=user_id, role=level.value, by=actor.id
    )
    return membership


def _require_member(db: Session, project_id: int, user_id: int) -> ProjectRole:
    membership = get_member(db, project_id, user_id)
    if not membership:
        raise NotFound("Member not found")
    return membership


def update_member_role(
    db: Session,
    actor: User,
    project_id: int,
    user_id: int,
    role: ProjectRoleLevel | str,
) -> ProjectRole:
    access.check(db, actor.id, project_id, access.MANAGE_MEMBERS_LEVEL)
    project = _load_project(db, project_id)
    access.ensure_member_mutable(project, user_id, action="change_role")
    level = _assignable_role(role)
    membership = _require_member(db, project.id, user_id)
    membership.role = level.value
    project.updated_at = utcnow_iso()
    db.commit()
    db.refresh(membership)
    log_event(
        logger, "member.role_changed", project_id=project.id, user_id=user_id, role=level.value, by=actor.id
    )
    return membership


def remove_member(db: Session, actor: User, project_id: int, user_id: int) -> None:
    access.check(db, actor.id, project_id, access.MANAGE_MEMBERS_LEVEL)
    project = _load_project(db, project_id)
    access.ensure_member_mutable(project, user_id, action="remove")
    membership = _require_member(db, project.id, user_id)
    db.delete(membership)
    project.updated_at = utcnow_iso()
    db.commit()
    log_event(logger, "member.removed", project_id=project.id, user_id=user_id, by=actor.id)

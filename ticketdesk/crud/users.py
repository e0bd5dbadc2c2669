"""CRUD helpers for user accounts, credentials and per-user statistics."""

from __future__ import annotations

import logging

from sqlalchemy import desc, func, or_, select
from sqlalchemy.orm import Session

from ..core import access
from ..core.choices import UserRole
from ..core.errors import AccessDenied, Conflict, NotFound, ValidationFailed
from ..core.logging import log_event
from ..core.security import hash_password, verify_password
from ..db.session import commit_or_conflict
from ..models.project import ProjectRole
from ..models.ticket import Ticket
from ..models.user import User
from ..services.clock import utcnow_iso
from ..services.querying import Page, PageRequest, paginate, search_clause

logger = logging.getLogger("ticketdesk.crud.users")

DUPLICATE_USER_MESSAGE = "User with this email or username already exists"
PROFILE_READERS = {UserRole.ADMIN, UserRole.MANAGER}
MEMBER_SEARCH_LIMIT = 10

# Compared against when the email is unknown so both login failures cost one bcrypt check.
_DUMMY_HASH = hash_password("ticketdesk-timing-dummy")


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> User | None:
    stmt = select(User).where(func.lower(User.email) == email.strip().lower())
    return db.execute(stmt).scalars().first()


def _require_user(db: Session, user_id: int) -> User:
    user = get_user_by_id(db, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def create_user(db: Session, payload: dict) -> User:
    email = (payload.get("email") or "").strip().lower()
    username = (payload.get("username") or "").strip()
    password = payload.get("password") or ""
    if not email or not username:
        raise ValidationFailed("email and username are required")
    if len(password) < 6:
        raise ValidationFailed("password must be at least 6 characters")
    existing = db.execute(
        select(User.id).where(or_(func.lower(User.email) == email, User.username == username))
    ).first()
    if existing:
        raise Conflict(DUPLICATE_USER_MESSAGE)
    now = utcnow_iso()
    user = User(
        email=email,
        username=username,
        password_hash=hash_password(password),
        first_name=(payload.get("first_name") or None),
        last_name=(payload.get("last_name") or None),
        role=UserRole(payload.get("role") or UserRole.DEVELOPER).value,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    commit_or_conflict(db, DUPLICATE_USER_MESSAGE)
    db.refresh(user)
    log_event(logger, "user.registered", user_id=user.id)
    return user


def authenticate(db: Session, email: str, password: str) -> User | None:
    user = get_user_by_email(db, email or "")
    if user is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def change_password(db: Session, actor: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, actor.password_hash):
        raise ValidationFailed("Current password is incorrect")
    if len(new_password or "") < 6:
        raise ValidationFailed("password must be at least 6 characters")
    actor.password_hash = hash_password(new_password)
    actor.updated_at = utcnow_iso()
    db.commit()
    log_event(logger, "user.password_changed", user_id=actor.id)


def ticket_counts(db: Session, user_ids: list[int]) -> dict[int, tuple[int, int]]:
    """Map user id to ``(assigned, created)`` ticket counts."""

    if not user_ids:
        return {}
    assigned = dict(
        db.execute(
            select(Ticket.assigned_to, func.count(Ticket.id))
            .where(Ticket.assigned_to.in_(user_ids))
            .group_by(Ticket.assigned_to)
        ).all()
    )
    created = dict(
        db.execute(
            select(Ticket.created_by, func.count(Ticket.id))
            .where(Ticket.created_by.in_(user_ids))
            .group_by(Ticket.created_by)
        ).all()
    )
    return {uid: (assigned.get(uid, 0), created.get(uid, 0)) for uid in user_ids}


def list_users(
    db: Session,
    actor: User,
    *,
    search: str | None = None,
    role: UserRole | str | None = None,
    paging: PageRequest | None = None,
) -> Page:
    paging = paging or PageRequest()
    stmt = select(User)
    clause = search_clause(search, [User.username, User.email, User.first_name, User.last_name])
    if clause is not None:
        stmt = stmt.where(clause)
    if role:
        stmt = stmt.where(User.role == UserRole(role).value)
    stmt = stmt.order_by(desc(User.created_at), desc(User.id))
    return paginate(db, stmt, paging)


def _ensure_self_or(actor: User, user_id: int, allowed: set[UserRole]) -> None:
    if actor.id != user_id and actor.global_role not in allowed:
        raise AccessDenied("Insufficient permissions")


def get_user(db: Session, actor: User, user_id: int) -> User:
    _ensure_self_or(actor, user_id, PROFILE_READERS)
    return _require_user(db, user_id)


def update_user(db: Session, actor: User, user_id: int, payload: dict) -> User:
    _ensure_self_or(actor, user_id, {UserRole.ADMIN})
    user = _require_user(db, user_id)
    for field in ("first_name", "last_name"):
        if field in payload:
            value = (payload.get(field) or "").strip()
            if not value:
                raise ValidationFailed(f"{field} must not be empty")
            if len(value) > 50:
                raise ValidationFailed(f"{field} must be at most 50 characters")
            setattr(user, field, value)
    if "avatar" in payload:
        avatar = payload.get("avatar")
        user.avatar = str(avatar) if avatar else None
    user.updated_at = utcnow_iso()
    db.commit()
    db.refresh(user)
    return user


def update_user_role(db: Session, actor: User, user_id: int, role: UserRole | str) -> User:
    if actor.global_role is not UserRole.ADMIN:
        raise AccessDenied("Insufficient permissions")
    if actor.id == user_id:
        raise ValidationFailed("Cannot change your own role")
    user = _require_user(db, user_id)
    user.role = UserRole(role).value
    user.updated_at = utcnow_iso()
    db.commit()
    db.refresh(user)
    log_event(logger, "user.role_changed", user_id=user.id, role=user.role, by=actor.id)
    return user


def delete_user(db: Session, actor: User, user_id: int) -> None:
    if actor.global_role is not UserRole.ADMIN:
        raise AccessDenied("Insufficient permissions")
    if actor.id == user_id:
        raise ValidationFailed("Cannot delete your own account")
    user = _require_user(db, user_id)
    assigned, created = ticket_counts(db, [user.id])[user.id]
    memberships = db.execute(
        select(func.count(ProjectRole.id)).where(ProjectRole.user_id == user.id)
    ).scalar_one()
    if assigned or created or memberships:
        raise ValidationFailed(
            "Cannot delete user with active projects or tickets. Please reassign or close them first."
        )
    db.delete(user)
    db.commit()
    log_event(logger, "user.deleted", user_id=user_id, by=actor.id)


def user_stats(db: Session, actor: User, user_id: int) -> dict:
    _ensure_self_or(actor, user_id, PROFILE_READERS)
    _require_user(db, user_id)
    assigned, created = ticket_counts(db, [user_id])[user_id]
    project_count = db.execute(
        select(func.count(ProjectRole.id)).where(ProjectRole.user_id == user_id)
    ).scalar_one()
    breakdown = dict(
        db.execute(
            select(Ticket.status, func.count(Ticket.id))
            .where(Ticket.assigned_to == user_id)
            .group_by(Ticket.status)
        ).all()
    )
    return {
        "assigned_tickets": assigned,
        "created_tickets": created,
        "project_count": project_count,
        "status_breakdown": breakdown,
    }


def search_project_members(db: Session, actor: User, project_id: int, search: str | None = None) -> list[User]:
    """Candidate users for assignment or membership in ``project_id``, excluding the caller."""

    access.check(db, actor.id, project_id)
    stmt = select(User).where(User.id != actor.id)
    clause = search_clause(search, [User.username, User.first_name, User.last_name])
    if clause is not None:
        stmt = stmt.where(clause)
    stmt = stmt.order_by(User.username).limit(MEMBER_SEARCH_LIMIT)
    return list(db.execute(stmt).scalars().all())

"""CRUD helpers for ticket comments."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..core import access
from ..core.errors import AccessDenied, NotFound, ValidationFailed
from ..core.logging import log_event
from ..models.comment import Comment
from ..models.ticket import Ticket
from ..models.user import User
from ..services.clock import utcnow_iso

logger = logging.getLogger("ticketdesk.crud.comments")

CONTENT_MAX = 1000


def _content(value: object) -> str:
    cleaned = value.strip() if isinstance(value, str) else ""
    if not cleaned:
        raise ValidationFailed("content is required")
    if len(cleaned) > CONTENT_MAX:
        raise ValidationFailed(f"content must be at most {CONTENT_MAX} characters")
    return cleaned


def _ticket_project_id(db: Session, ticket_id: int) -> int:
    project_id = db.execute(select(Ticket.project_id).where(Ticket.id == ticket_id)).scalar()
    if project_id is None:
        raise NotFound("Ticket not found")
    return project_id


def _load_comment(db: Session, comment_id: int) -> Comment:
    stmt = (
        select(Comment)
        .options(selectinload(Comment.user), selectinload(Comment.ticket))
        .where(Comment.id == comment_id)
    )
    comment = db.execute(stmt).scalars().first()
    if not comment:
        raise NotFound("Comment not found")
    return comment


def _authorize_change(db: Session, actor: User, comment: Comment, verb: str) -> None:
    membership = access.check(db, actor.id, comment.ticket.project_id)
    if not access.can_modify_comment(membership.level, comment, actor.id):
        raise AccessDenied(f"Insufficient permissions to {verb} comment")


def list_comments(db: Session, actor: User, ticket_id: int) -> list[Comment]:
    access.check(db, actor.id, _ticket_project_id(db, ticket_id))
    stmt = (
        select(Comment)
        .options(selectinload(Comment.user))
        .where(Comment.ticket_id == ticket_id)
        .order_by(Comment.created_at, Comment.id)
    )
    return list(db.execute(stmt).scalars().all())


def create_comment(db: Session, actor: User, ticket_id: int, content: str) -> Comment:
    access.check(db, actor.id, _ticket_project_id(db, ticket_id))
    now = utcnow_iso()
    comment = Comment(
        content=_content(content),
        ticket_id=ticket_id,
        user_id=actor.id,
        created_at=now,
        updated_at=now,
    )
    db.add(comment)
    db.commit()
    log_event(logger, "comment.created", comment_id=comment.id, ticket_id=ticket_id, by=actor.id)
    return _load_comment(db, comment.id)


def update_comment(db: Session, actor: User, comment_id: int, content: str) -> Comment:
    comment = _load_comment(db, comment_id)
    _authorize_change(db, actor, comment, "edit")
    comment.content = _content(content)
    comment.updated_at = utcnow_iso()
    db.commit()
    return _load_comment(db, comment.id)


def delete_comment(db: Session, actor: User, comment_id: int) -> None:
    comment = _load_comment(db, comment_id)
    _authorize_change(db, actor, comment, "delete")
    db.delete(comment)
    db.commit()
    log_event(logger, "comment.deleted", comment_id=comment_id, by=actor.id)

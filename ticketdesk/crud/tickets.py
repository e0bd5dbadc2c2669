"""CRUD helpers for tickets and their labels."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session, selectinload

from ..core import access
from ..core.choices import TicketPriority, TicketStatus, TicketType
from ..core.errors import AccessDenied, NotFound, ValidationFailed
from ..core.logging import log_event
from ..models.comment import Comment
from ..models.ticket import Ticket
from ..models.user import User
from ..services.clock import utcnow_iso
from ..services.querying import Page, PageRequest, paginate, search_clause
from .labels import get_label

logger = logging.getLogger("ticketdesk.crud.tickets")

TITLE_MAX = 200
DESCRIPTION_MAX = 2000


@dataclass
class TicketFilters:
    project_id: int | None = None
    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    type: TicketType | None = None
    assigned_to: int | None = None
    search: str | None = None


def _ticket_stmt():
    return select(Ticket).options(
        selectinload(Ticket.project),
        selectinload(Ticket.assignee),
        selectinload(Ticket.creator),
        selectinload(Ticket.labels),
    )


def _load_ticket(db: Session, ticket_id: int, *, with_comments: bool = False) -> Ticket:
    stmt = _ticket_stmt().where(Ticket.id == ticket_id)
    if with_comments:
        stmt = stmt.options(selectinload(Ticket.comments).selectinload(Comment.user))
    ticket = db.execute(stmt).scalars().first()
    if not ticket:
        raise NotFound("Ticket not found")
    return ticket


def _text(value: object, field: str, max_length: int) -> str:
    cleaned = value.strip() if isinstance(value, str) else ""
    if not cleaned:
        raise ValidationFailed(f"{field} is required")
    if len(cleaned) > max_length:
        raise ValidationFailed(f"{field} must be at most {max_length} characters")
    return cleaned


def _choice(enum_cls, value: object, field: str) -> str:
    try:
        return enum_cls(value).value
    except ValueError as exc:
        allowed = ", ".join(item.value for item in enum_cls)
        raise ValidationFailed(f"{field} must be one of {allowed}") from exc


def _due_date(value: object) -> str | None:
    if value in (None, ""):
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).isoformat()
        except ValueError as exc:
            raise ValidationFailed("dueDate must be an ISO-8601 date") from exc
    raise ValidationFailed("dueDate must be an ISO-8601 date")


def _ensure_assignable(db: Session, project_id: int, user_id: int | None) -> None:
    if user_id is None:
        return
    if access.find_role(db, user_id, project_id) is None:
        raise ValidationFailed("Assignee must be a member of the project")


def comment_counts(db: Session, ticket_ids: list[int]) -> dict[int, int]:
    if not ticket_ids:
        return {}
    counts = dict(
        db.execute(
            select(Comment.ticket_id, func.count(Comment.id))
            .where(Comment.ticket_id.in_(ticket_ids))
            .group_by(Comment.ticket_id)
        ).all()
    )
    return {tid: counts.get(tid, 0) for tid in ticket_ids}


def list_tickets(
    db: Session,
    actor: User,
    filters: TicketFilters | None = None,
    paging: PageRequest | None = None,
) -> Page:
    filters = filters or TicketFilters()
    paging = paging or PageRequest()
    stmt = _ticket_stmt()
    if filters.project_id is not None:
        access.check(db, actor.id, filters.project_id)
        stmt = stmt.where(Ticket.project_id == filters.project_id)
    else:
        stmt = stmt.where(Ticket.project_id.in_(access.member_project_ids(actor.id)))
    if filters.status:
        stmt = stmt.where(Ticket.status == TicketStatus(filters.status).value)
    if filters.priority:
        stmt = stmt.where(Ticket.priority == TicketPriority(filters.priority).value)
    if filters.type:
        stmt = stmt.where(Ticket.type == TicketType(filters.type).value)
    if filters.assigned_to is not None:
        stmt = stmt.where(Ticket.assigned_to == filters.assigned_to)
    clause = search_clause(filters.search, [Ticket.title, Ticket.description])
    if clause is not None:
        stmt = stmt.where(clause)
    stmt = stmt.order_by(desc(Ticket.updated_at), desc(Ticket.id))
    return paginate(db, stmt, paging)


def get_ticket(db: Session, actor: User, ticket_id: int) -> Ticket:
    ticket = _load_ticket(db, ticket_id, with_comments=True)
    access.check(db, actor.id, ticket.project_id)
    return ticket


def create_ticket(db: Session, actor: User, payload: dict) -> Ticket:
    project_id = payload.get("project_id")
    if project_id is None:
        raise ValidationFailed("projectId is required")
    access.check(db, actor.id, project_id)
    assigned_to = payload.get("assigned_to")
    _ensure_assignable(db, project_id, assigned_to)
    now = utcnow_iso()
    ticket = Ticket(
        title=_text(payload.get("title"), "title", TITLE_MAX),
        description=_text(payload.get("description"), "description", DESCRIPTION_MAX),
        status=TicketStatus.OPEN.value,
        priority=_choice(TicketPriority, payload.get("priority") or TicketPriority.MEDIUM, "priority"),
        type=_choice(TicketType, payload.get("type") or TicketType.TASK, "type"),
        project_id=project_id,
        assigned_to=assigned_to,
        created_by=actor.id,
        due_date=_due_date(payload.get("due_date")),
        created_at=now,
        updated_at=now,
    )
    db.add(ticket)
    db.commit()
    log_event(logger, "ticket.created", ticket_id=ticket.id, project_id=project_id, by=actor.id)
    return _load_ticket(db, ticket.id, with_comments=True)


def update_ticket(db: Session, actor: User, ticket_id: int, payload: dict) -> Ticket:
    """Apply a partial update; only keys present in ``payload`` are touched.

    Status changes by a VIEWER are refused unless the ticket is assigned to
    them. Every other field is open to any project member. Transitions are not
    ordered, so a CLOSED ticket may go straight back to OPEN.
    """

    ticket = _load_ticket(db, ticket_id)
    membership = access.check(db, actor.id, ticket.project_id)

    new_status = payload.get("status")
    if new_status is not None:
        new_status = _choice(TicketStatus, new_status, "status")
        if new_status != ticket.status and not access.can_change_ticket_status(
            membership.level, ticket, actor.id
        ):
            raise AccessDenied("Insufficient permissions to change status")

    if "title" in payload and payload["title"] is not None:
        ticket.title = _text(payload["title"], "title", TITLE_MAX)
    if "description" in payload and payload["description"] is not None:
        ticket.description = _text(payload["description"], "description", DESCRIPTION_MAX)
    if new_status is not None:
        ticket.status = new_status
    if payload.get("priority") is not None:
        ticket.priority = _choice(TicketPriority, payload["priority"], "priority")
    if payload.get("type") is not None:
        ticket.type = _choice(TicketType, payload["type"], "type")
    if "assigned_to" in payload:
        _ensure_assignable(db, ticket.project_id, payload["assigned_to"])
        ticket.assigned_to = payload["assigned_to"]
    if "due_date" in payload:
        ticket.due_date = _due_date(payload["due_date"])
    ticket.updated_at = utcnow_iso()
    db.commit()
    log_event(logger, "ticket.updated", ticket_id=ticket.id, fields=sorted(payload), by=actor.id)
    return _load_ticket(db, ticket.id, with_comments=True)


def delete_ticket(db: Session, actor: User, ticket_id: int) -> None:
    ticket = _load_ticket(db, ticket_id)
    membership = access.find_role(db, actor.id, ticket.project_id)
    if membership is None or not access.can_delete_ticket(membership.level):
        raise AccessDenied("Insufficient permissions to delete ticket")
    db.delete(ticket)
    db.commit()
    log_event(logger, "ticket.deleted", ticket_id=ticket_id, by=actor.id)


def add_label(db: Session, actor: User, ticket_id: int, label_id: int) -> Ticket:
    ticket = _load_ticket(db, ticket_id)
    access.check(db, actor.id, ticket.project_id)
    label = get_label(db, label_id)
    if not label:
        raise NotFound("Label not found")
    if label not in ticket.labels:
        ticket.labels.append(label)
        ticket.updated_at = utcnow_iso()
        db.commit()
    return _load_ticket(db, ticket.id)


def remove_label(db: Session, actor: User, ticket_id: int, label_id: int) -> Ticket:
    """Detach ``label_id``; a label that was never attached is a no-op."""

    ticket = _load_ticket(db, ticket_id)
    access.check(db, actor.id, ticket.project_id)
    remaining = [label for label in ticket.labels if label.id != label_id]
    if len(remaining) != len(ticket.labels):
        ticket.labels = remaining
        ticket.updated_at = utcnow_iso()
        db.commit()
    return _load_ticket(db, ticket.id)

"""CRUD helpers for the global label catalogue."""

from __future__ import annotations

import logging
import re

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.errors import Conflict, ValidationFailed
from ..core.logging import log_event
from ..db.session import commit_or_conflict
from ..models.label import DEFAULT_LABEL_COLOR, Label
from ..models.user import User
from ..services.clock import utcnow_iso

logger = logging.getLogger("ticketdesk.crud.labels")

COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
DUPLICATE_LABEL_MESSAGE = "Label already exists"


def list_labels(db: Session, actor: User) -> list[Label]:
    return list(db.execute(select(Label).order_by(Label.name)).scalars().all())


def get_label(db: Session, label_id: int) -> Label | None:
    return db.get(Label, label_id)


def create_label(db: Session, actor: User, payload: dict) -> Label:
    name = (payload.get("name") or "").strip()
    if not name:
        raise ValidationFailed("name is required")
    if len(name) > 50:
        raise ValidationFailed("name must be at most 50 characters")
    color = (payload.get("color") or DEFAULT_LABEL_COLOR).strip()
    if not COLOR_RE.match(color):
        raise ValidationFailed("color must be a #RRGGBB hex value")
    existing = db.execute(select(Label.id).where(func.lower(Label.name) == name.lower())).first()
    if existing:
        raise Conflict(DUPLICATE_LABEL_MESSAGE)
    label = Label(name=name, color=color.upper(), created_at=utcnow_iso())
    db.add(label)
    commit_or_conflict(db, DUPLICATE_LABEL_MESSAGE)
    db.refresh(label)
    log_event(logger, "label.created", label_id=label.id, by=actor.id)
    return label

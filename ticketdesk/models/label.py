"""Global tags that can be attached to any number of tickets."""

from __future__ import annotations

from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship

from ..db.session import Base
from .ticket import ticket_labels

DEFAULT_LABEL_COLOR = "#6B7280"


class Label(Base):
    __tablename__ = "labels"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False, unique=True)
    color = Column(String(7), nullable=False, default=DEFAULT_LABEL_COLOR)
    created_at = Column(Text, nullable=False)

    tickets = relationship("Ticket", secondary=ticket_labels, back_populates="labels")


__all__ = ["DEFAULT_LABEL_COLOR", "Label"]

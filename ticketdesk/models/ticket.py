"""SQLAlchemy model for tickets and their label association table."""

from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import relationship

from ..core.choices import TicketPriority, TicketStatus, TicketType
from ..db.session import Base

ticket_labels = Table(
    "ticket_labels",
    Base.metadata,
    Column("ticket_id", Integer, ForeignKey("tickets.id", ondelete="CASCADE"), primary_key=True),
    Column("label_id", Integer, ForeignKey("labels.id", ondelete="CASCADE"), primary_key=True),
)


class Ticket(Base):
    __tablename__ = "tickets"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default=TicketStatus.OPEN.value, index=True)
    priority = Column(String(20), nullable=False, default=TicketPriority.MEDIUM.value)
    type = Column(String(20), nullable=False, default=TicketType.TASK.value)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    due_date = Column(Text, nullable=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    project = relationship("Project", back_populates="tickets")
    assignee = relationship("User", back_populates="assigned_tickets", foreign_keys=[assigned_to])
    creator = relationship("User", back_populates="created_tickets", foreign_keys=[created_by])
    labels = relationship("Label", secondary=ticket_labels, back_populates="tickets", order_by="Label.name")
    comments = relationship(
        "Comment",
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="Comment.id",
    )


__all__ = ["Ticket", "ticket_labels"]

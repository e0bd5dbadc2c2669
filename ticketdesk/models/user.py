"""SQLAlchemy model for user accounts."""

from __future__ import annotations

from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship

from ..core.choices import UserRole
from ..db.session import Base


class User(Base):
    __tablename__ = "users"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    password_hash = Column(Text, nullable=False)
    first_name = Column(String(50), nullable=True)
    last_name = Column(String(50), nullable=True)
    avatar = Column(Text, nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.DEVELOPER.value)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    project_roles = relationship("ProjectRole", back_populates="user", cascade="all, delete-orphan")
    assigned_tickets = relationship("Ticket", back_populates="assignee", foreign_keys="Ticket.assigned_to")
    created_tickets = relationship("Ticket", back_populates="creator", foreign_keys="Ticket.created_by")
    comments = relationship("Comment", back_populates="user", cascade="all, delete-orphan")

    @property
    def global_role(self) -> UserRole:
        return UserRole(self.role)


__all__ = ["User"]

"""SQLAlchemy models for projects and the per-project role table."""

from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from ..core.choices import ProjectRoleLevel, ProjectStatus
from ..db.session import Base


class Project(Base):
    """Named container of tickets, owned by the user who created it."""

    __tablename__ = "projects"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=ProjectStatus.ACTIVE.value)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    creator = relationship("User", foreign_keys=[created_by])
    members = relationship(
        "ProjectRole",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ProjectRole.id",
    )
    tickets = relationship("Ticket", back_populates="project", cascade="all, delete-orphan")


class ProjectRole(Base):
    """Binds one user to one project with a permission tier."""

    __tablename__ = "project_roles"
    __allow_unmapped__ = True
    __table_args__ = (UniqueConstraint("user_id", "project_id", name="uq_project_roles_user_project"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(20), nullable=False, default=ProjectRoleLevel.MEMBER.value)
    created_at = Column(Text, nullable=False)

    user = relationship("User", back_populates="project_roles")
    project = relationship("Project", back_populates="members")

    @property
    def level(self) -> ProjectRoleLevel:
        return ProjectRoleLevel(self.role)


__all__ = ["Project", "ProjectRole"]

"""Enumerated choices shared by models, schemas and services."""

from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """Global capability tier of a user account."""

    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    DEVELOPER = "DEVELOPER"
    TESTER = "TESTER"


class ProjectRoleLevel(str, Enum):
    """Permission tier a user holds inside one project.

    Members compare by rank, so ``role >= ProjectRoleLevel.ADMIN`` reads as
    "at least as privileged as an admin".
    """

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"
    VIEWER = "VIEWER"

    @property
    def rank(self) -> int:
        return _ROLE_RANKS[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ProjectRoleLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, ProjectRoleLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, ProjectRoleLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, ProjectRoleLevel):
            return NotImplemented
        return self.rank >= other.rank

    # Equality and hashing stay str-based; equal values always share a rank.


_ROLE_RANKS = {
    ProjectRoleLevel.OWNER: 4,
    ProjectRoleLevel.ADMIN: 3,
    ProjectRoleLevel.MEMBER: 2,
    ProjectRoleLevel.VIEWER: 1,
}

# Roles that can be granted through member management; OWNER only comes from creating a project.
ASSIGNABLE_PROJECT_ROLES = (ProjectRoleLevel.ADMIN, ProjectRoleLevel.MEMBER, ProjectRoleLevel.VIEWER)


class ProjectStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"
    COMPLETED = "COMPLETED"


class TicketStatus(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    REVIEW = "REVIEW"
    TESTING = "TESTING"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class TicketPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class TicketType(str, Enum):
    BUG = "BUG"
    FEATURE = "FEATURE"
    TASK = "TASK"
    STORY = "STORY"


__all__ = [
    "ASSIGNABLE_PROJECT_ROLES",
    "ProjectRoleLevel",
    "ProjectStatus",
    "TicketPriority",
    "TicketStatus",
    "TicketType",
    "UserRole",
]

"""Build response DTOs from ORM rows.

Routers never hand a storage record to FastAPI directly; everything goes
through one of these functions so credential columns cannot leak.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from ..crud.projects import ticket_counts as project_ticket_counts
from ..crud.tickets import comment_counts
from ..crud.users import ticket_counts as user_ticket_counts
from ..models.comment import Comment
from ..models.project import Project, ProjectRole
from ..models.ticket import Ticket
from ..models.user import User
from ..schemas.comment import CommentOut
from ..schemas.project import MemberOut, ProjectDetail, ProjectOut
from ..schemas.ticket import TicketDetail, TicketOut
from ..schemas.user import UserListItem, UserOut, UserSearchResult


def user_out(user: User) -> UserOut:
    return UserOut.model_validate(user)


def user_list_items(db: Session, users: list[User]) -> list[UserListItem]:
    counts = user_ticket_counts(db, [user.id for user in users])
    items = []
    for user in users:
        assigned, created = counts.get(user.id, (0, 0))
        items.append(
            UserListItem.model_validate(user).model_copy(
                update={"assigned_ticket_count": assigned, "created_ticket_count": created}
            )
        )
    return items


def user_search_results(users: list[User]) -> list[UserSearchResult]:
    return [UserSearchResult.model_validate(user) for user in users]


def member_out(membership: ProjectRole) -> MemberOut:
    return MemberOut.model_validate(membership)


def comment_out(comment: Comment) -> CommentOut:
    return CommentOut.model_validate(comment)


def tickets_out(db: Session, tickets: list[Ticket]) -> list[TicketOut]:
    counts = comment_counts(db, [ticket.id for ticket in tickets])
    return [
        TicketOut.model_validate(ticket).model_copy(update={"comment_count": counts.get(ticket.id, 0)})
        for ticket in tickets
    ]


def ticket_detail(ticket: Ticket) -> TicketDetail:
    detail = TicketDetail.model_validate(ticket)
    return detail.model_copy(update={"comment_count": len(detail.comments)})


def projects_out(db: Session, projects: list[Project]) -> list[ProjectOut]:
    counts = project_ticket_counts(db, [project.id for project in projects])
    return [
        ProjectOut.model_validate(project).model_copy(update={"ticket_count": counts.get(project.id, 0)})
        for project in projects
    ]


def project_detail(db: Session, project: Project) -> ProjectDetail:
    tickets = sorted(project.tickets, key=lambda t: (t.updated_at, t.id), reverse=True)
    base = ProjectOut.model_validate(project)
    return ProjectDetail(
        **base.model_dump(),
        tickets=tickets_out(db, tickets),
    ).model_copy(update={"ticket_count": len(tickets)})

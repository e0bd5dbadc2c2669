"""Ticket rules: visibility, status changes, deletion, labels and paging."""

import pytest

from ticketdesk.core.errors import AccessDenied, NotFound, ValidationFailed
from ticketdesk.crud.labels import create_label
from ticketdesk.crud.projects import add_member, create_project
from ticketdesk.crud.tickets import (
    TicketFilters,
    add_label,
    create_ticket,
    delete_ticket,
    get_ticket,
    list_tickets,
    remove_label,
    update_ticket,
)
from ticketdesk.services.querying import PageRequest


@pytest.fixture()
def board(db_session, make_user):
    owner = make_user("owner")
    admin = make_user("admin")
    member = make_user("member")
    viewer = make_user("viewer")
    outsider = make_user("outsider")
    project = create_project(db_session, owner, {"name": "Apollo"})
    add_member(db_session, owner, project.id, admin.id, "ADMIN")
    add_member(db_session, owner, project.id, member.id, "MEMBER")
    add_member(db_session, owner, project.id, viewer.id, "VIEWER")
    return {
        "project": project,
        "owner": owner,
        "admin": admin,
        "member": member,
        "viewer": viewer,
        "outsider": outsider,
    }


def _ticket(db, actor, project, **extra):
    payload = {"title": "Fix login", "description": "Login fails on Safari", "project_id": project.id}
    payload.update(extra)
    return create_ticket(db, actor, payload)


def test_create_ticket_defaults(db_session, board):
    ticket = _ticket(db_session, board["member"], board["project"])

    assert ticket.status == "OPEN"
    assert ticket.priority == "MEDIUM"
    assert ticket.type == "TASK"
    assert ticket.created_by == board["member"].id
    assert ticket.assigned_to is None
    assert ticket.created_at == ticket.updated_at


def test_viewer_may_create_tickets(db_session, board):
    ticket = _ticket(db_session, board["viewer"], board["project"], priority="HIGH", type="BUG")
    assert (ticket.priority, ticket.type) == ("HIGH", "BUG")


def test_outsider_cannot_touch_tickets(db_session, board):
    ticket = _ticket(db_session, board["member"], board["project"])
    outsider = board["outsider"]

    with pytest.raises(AccessDenied):
        _ticket(db_session, outsider, board["project"])
    with pytest.raises(AccessDenied):
        get_ticket(db_session, outsider, ticket.id)
    with pytest.raises(AccessDenied):
        update_ticket(db_session, outsider, ticket.id, {"title": "Mine now"})
    with pytest.raises(AccessDenied):
        delete_ticket(db_session, outsider, ticket.id)
    with pytest.raises(AccessDenied):
        list_tickets(db_session, outsider, TicketFilters(project_id=board["project"].id))


def test_missing_ticket_is_not_found(db_session, board):
    with pytest.raises(NotFound, match="Ticket not found"):
        get_ticket(db_session, board["outsider"], 9999)


def test_assignee_must_be_project_member(db_session, board):
    with pytest.raises(ValidationFailed, match="Assignee must be a member"):
        _ticket(db_session, board["member"], board["project"], assigned_to=board["outsider"].id)


def test_viewer_cannot_change_status_but_can_edit_other_fields(db_session, board):
    ticket = _ticket(db_session, board["member"], board["project"])
    viewer = board["viewer"]

    with pytest.raises(AccessDenied, match="Insufficient permissions to change status"):
        update_ticket(db_session, viewer, ticket.id, {"status": "IN_PROGRESS"})

    updated = update_ticket(db_session, viewer, ticket.id, {"title": "Fix login on Safari"})
    assert updated.title == "Fix login on Safari"
    assert updated.status == "OPEN"

    # Sending the unchanged status along with other fields is not a status change.
    updated = update_ticket(db_session, viewer, ticket.id, {"status": "OPEN", "priority": "URGENT"})
    assert updated.priority == "URGENT"


def test_assigned_viewer_may_change_status(db_session, board):
    viewer = board["viewer"]
    ticket = _ticket(db_session, board["member"], board["project"], assigned_to=viewer.id)

    updated = update_ticket(db_session, viewer, ticket.id, {"status": "IN_PROGRESS"})
    assert updated.status == "IN_PROGRESS"


def test_status_transitions_are_unordered(db_session, board):
    member = board["member"]
    ticket = _ticket(db_session, member, board["project"])

    assert update_ticket(db_session, member, ticket.id, {"status": "CLOSED"}).status == "CLOSED"
    assert update_ticket(db_session, member, ticket.id, {"status": "OPEN"}).status == "OPEN"


def test_update_can_clear_assignee_and_set_due_date(db_session, board):
    member = board["member"]
    ticket = _ticket(db_session, member, board["project"], assigned_to=member.id)

    updated = update_ticket(db_session, member, ticket.id, {"assigned_to": None, "due_date": "2030-01-31"})
    assert updated.assigned_to is None
    assert updated.due_date.startswith("2030-01-31")


def test_delete_requires_project_admin(db_session, board):
    ticket = _ticket(db_session, board["member"], board["project"])

    for actor in (board["member"], board["viewer"]):
        with pytest.raises(AccessDenied, match="Insufficient permissions to delete ticket"):
            delete_ticket(db_session, actor, ticket.id)

    delete_ticket(db_session, board["admin"], ticket.id)
    with pytest.raises(NotFound):
        get_ticket(db_session, board["admin"], ticket.id)


def test_labels_attach_once_and_detach_idempotently(db_session, board):
    member = board["member"]
    ticket = _ticket(db_session, member, board["project"])
    label = create_label(db_session, member, {"name": "bug", "color": "#ff0000"})
    assert label.color == "#FF0000"

    add_label(db_session, member, ticket.id, label.id)
    ticket = add_label(db_session, member, ticket.id, label.id)
    assert [item.name for item in ticket.labels] == ["bug"]

    ticket = remove_label(db_session, member, ticket.id, label.id)
    assert ticket.labels == []
    ticket = remove_label(db_session, member, ticket.id, label.id)
    assert ticket.labels == []

    with pytest.raises(NotFound, match="Label not found"):
        add_label(db_session, member, ticket.id, 9999)


def test_pagination_reports_totals(db_session, board):
    member = board["member"]
    for index in range(15):
        _ticket(db_session, member, board["project"], title=f"Ticket {index}")

    page = list_tickets(
        db_session,
        member,
        TicketFilters(project_id=board["project"].id),
        PageRequest(page=2, limit=10),
    )
    assert len(page.items) == 5
    assert page.meta() == {"page": 2, "limit": 10, "total": 15, "pages": 2}

    empty = list_tickets(db_session, member, TicketFilters(), PageRequest(page=5, limit=10))
    assert empty.items == []
    assert empty.total == 15


def test_page_request_bounds():
    with pytest.raises(ValidationFailed):
        PageRequest(page=0)
    with pytest.raises(ValidationFailed):
        PageRequest(limit=101)


def test_list_without_project_only_covers_member_projects(db_session, board):
    member = board["member"]
    outsider = board["outsider"]
    _ticket(db_session, member, board["project"])
    side = create_project(db_session, outsider, {"name": "Side quest"})
    _ticket(db_session, outsider, side, title="Private")

    assert [t.title for t in list_tickets(db_session, member).items] == ["Fix login"]
    assert [t.title for t in list_tickets(db_session, outsider).items] == ["Private"]


def test_filters_and_search(db_session, board):
    member = board["member"]
    project = board["project"]
    _ticket(db_session, member, project, title="Crash on 50% zoom", priority="HIGH", type="BUG")
    _ticket(db_session, member, project, title="Dark mode", description="Add a theme", type="FEATURE")
    _ticket(db_session, member, project, title="Docs", description="Write 100_percent docs", assigned_to=member.id)

    def titles(**filters):
        return sorted(t.title for t in list_tickets(db_session, member, TicketFilters(**filters)).items)

    assert titles(type="BUG") == ["Crash on 50% zoom"]
    assert titles(priority="HIGH") == ["Crash on 50% zoom"]
    assert titles(assigned_to=member.id) == ["Docs"]
    assert titles(search="DARK") == ["Dark mode"]
    assert titles(search="theme") == ["Dark mode"]
    assert titles(search="50%") == ["Crash on 50% zoom"]
    assert titles(search="0_p") == ["Docs"]
    assert titles(status="CLOSED") == []

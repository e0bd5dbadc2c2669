from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..core.choices import TicketPriority, TicketStatus, TicketType
from ..core.config import settings
from ..crud.tickets import (
    TicketFilters,
    add_label,
    create_ticket,
    delete_ticket,
    get_ticket,
    list_tickets,
    remove_label,
    update_ticket,
)
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..models.user import User
from ..schemas.common import MessageResponse, Pagination
from ..schemas.label import LabelAttach
from ..schemas.ticket import TicketCreate, TicketListResponse, TicketResponse, TicketUpdate
from ..services.presenters import ticket_detail, tickets_out
from ..services.querying import PageRequest

router = APIRouter(prefix="/api/tickets", tags=["tickets"])


@router.get("", response_model=TicketListResponse)
def api_list_tickets(
    project_id: int | None = Query(default=None, alias="projectId"),
    status_: TicketStatus | None = Query(default=None, alias="status"),
    priority: TicketPriority | None = Query(default=None),
    type_: TicketType | None = Query(default=None, alias="type"),
    assigned_to: int | None = Query(default=None, alias="assignedTo"),
    search: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    filters = TicketFilters(
        project_id=project_id,
        status=status_,
        priority=priority,
        type=type_,
        assigned_to=assigned_to,
        search=search,
    )
    result = list_tickets(db, actor, filters, PageRequest(page=page, limit=limit))
    return TicketListResponse(
        tickets=tickets_out(db, result.items),
        pagination=Pagination(**result.meta()),
    )


@router.get("/{ticket_id}", response_model=TicketResponse)
def api_get_ticket(ticket_id: int, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return TicketResponse(ticket=ticket_detail(get_ticket(db, actor, ticket_id)))


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
def api_create_ticket(payload: TicketCreate, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    ticket = create_ticket(db, actor, payload.model_dump())
    return TicketResponse(message="Ticket created successfully", ticket=ticket_detail(ticket))


@router.put("/{ticket_id}", response_model=TicketResponse)
def api_update_ticket(
    ticket_id: int,
    payload: TicketUpdate,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ticket = update_ticket(db, actor, ticket_id, payload.model_dump(exclude_unset=True))
    return TicketResponse(message="Ticket updated successfully", ticket=ticket_detail(ticket))


@router.delete("/{ticket_id}", response_model=MessageResponse)
def api_delete_ticket(ticket_id: int, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    delete_ticket(db, actor, ticket_id)
    return MessageResponse(message="Ticket deleted successfully")


@router.post("/{ticket_id}/labels", response_model=TicketResponse)
def api_add_label(
    ticket_id: int,
    payload: LabelAttach,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ticket = add_label(db, actor, ticket_id, payload.label_id)
    return TicketResponse(message="Label added to ticket successfully", ticket=ticket_detail(ticket))


@router.delete("/{ticket_id}/labels/{label_id}", response_model=TicketResponse)
def api_remove_label(
    ticket_id: int,
    label_id: int,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ticket = remove_label(db, actor, ticket_id, label_id)
    return TicketResponse(message="Label removed from ticket successfully", ticket=ticket_detail(ticket))

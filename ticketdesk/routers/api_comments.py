from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..crud.comments import create_comment, delete_comment, list_comments, update_comment
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..models.user import User
from ..schemas.comment import CommentCreate, CommentListResponse, CommentResponse, CommentUpdate
from ..schemas.common import MessageResponse
from ..services.presenters import comment_out

router = APIRouter(prefix="/api/comments", tags=["comments"])


@router.get("/ticket/{ticket_id}", response_model=CommentListResponse)
def api_list_comments(ticket_id: int, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    comments = list_comments(db, actor, ticket_id)
    return CommentListResponse(comments=[comment_out(comment) for comment in comments])


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def api_create_comment(payload: CommentCreate, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    comment = create_comment(db, actor, payload.ticket_id, payload.content)
    return CommentResponse(message="Comment added successfully", comment=comment_out(comment))


@router.put("/{comment_id}", response_model=CommentResponse)
def api_update_comment(
    comment_id: int,
    payload: CommentUpdate,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    comment = update_comment(db, actor, comment_id, payload.content)
    return CommentResponse(message="Comment updated successfully", comment=comment_out(comment))


@router.delete("/{comment_id}", response_model=MessageResponse)
def api_delete_comment(comment_id: int, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    delete_comment(db, actor, comment_id)
    return MessageResponse(message="Comment deleted successfully")

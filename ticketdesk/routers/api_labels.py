from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..crud.labels import create_label, list_labels
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..models.user import User
from ..schemas.label import LabelCreate, LabelListResponse, LabelOut, LabelResponse

router = APIRouter(prefix="/api/labels", tags=["labels"])


@router.get("", response_model=LabelListResponse)
def api_list_labels(actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return LabelListResponse(labels=[LabelOut.model_validate(label) for label in list_labels(db, actor)])


@router.post("", response_model=LabelResponse, status_code=status.HTTP_201_CREATED)
def api_create_label(payload: LabelCreate, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    label = create_label(db, actor, payload.model_dump(exclude_unset=True))
    return LabelResponse(message="Label created successfully", label=LabelOut.model_validate(label))

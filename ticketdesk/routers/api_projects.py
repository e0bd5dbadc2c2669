from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..crud.projects import (
    add_member,
    create_project,
    delete_project,
    get_project,
    list_projects,
    remove_member,
    update_member_role,
    update_project,
)
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..models.user import User
from ..schemas.common import MessageResponse
from ..schemas.project import (
    MemberCreate,
    MemberResponse,
    MemberRoleUpdate,
    ProjectCreate,
    ProjectListResponse,
    ProjectResponse,
    ProjectUpdate,
)
from ..services.presenters import member_out, project_detail, projects_out

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.get("", response_model=ProjectListResponse)
def api_list_projects(actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return ProjectListResponse(projects=projects_out(db, list_projects(db, actor)))


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def api_create_project(payload: ProjectCreate, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    project = create_project(db, actor, payload.model_dump(exclude_unset=True))
    return ProjectResponse(message="Project created successfully", project=project_detail(db, project))


@router.get("/{project_id}", response_model=ProjectResponse)
def api_get_project(project_id: int, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return ProjectResponse(project=project_detail(db, get_project(db, actor, project_id)))


@router.put("/{project_id}", response_model=ProjectResponse)
def api_update_project(
    project_id: int,
    payload: ProjectUpdate,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = update_project(db, actor, project_id, payload.model_dump(exclude_unset=True))
    return ProjectResponse(message="Project updated successfully", project=project_detail(db, project))


@router.delete("/{project_id}", response_model=MessageResponse)
def api_delete_project(project_id: int, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    delete_project(db, actor, project_id)
    return MessageResponse(message="Project deleted successfully")


@router.post("/{project_id}/members", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
def api_add_member(
    project_id: int,
    payload: MemberCreate,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    membership = add_member(db, actor, project_id, payload.user_id, payload.role)
    return MemberResponse(message="Member added successfully", member=member_out(membership))


@router.put("/{project_id}/members/{user_id}", response_model=MemberResponse)
def api_update_member_role(
    project_id: int,
    user_id: int,
    payload: MemberRoleUpdate,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    membership = update_member_role(db, actor, project_id, user_id, payload.role)
    return MemberResponse(message="Member role updated successfully", member=member_out(membership))


@router.delete("/{project_id}/members/{user_id}", response_model=MessageResponse)
def api_remove_member(
    project_id: int,
    user_id: int,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    remove_member(db, actor, project_id, user_id)
    return MessageResponse(message="Member removed successfully")

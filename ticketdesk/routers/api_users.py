from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.choices import UserRole
from ..core.config import settings
from ..crud.users import (
    delete_user,
    get_user,
    list_users,
    search_project_members,
    update_user,
    update_user_role,
    user_stats,
)
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..models.user import User
from ..schemas.common import MessageResponse, Pagination
from ..schemas.user import (
    UserListResponse,
    UserResponse,
    UserRoleUpdate,
    UserSearchResponse,
    UserStats,
    UserStatsResponse,
    UserUpdate,
)
from ..services.presenters import user_list_items, user_search_results
from ..services.querying import PageRequest

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=UserListResponse)
def api_list_users(
    search: str | None = Query(default=None),
    role: UserRole | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    result = list_users(db, actor, search=search, role=role, paging=PageRequest(page=page, limit=limit))
    return UserListResponse(
        users=user_list_items(db, result.items),
        pagination=Pagination(**result.meta()),
    )


@router.get("/search/project-members", response_model=UserSearchResponse)
def api_search_project_members(
    project_id: int = Query(..., alias="projectId"),
    search: str | None = Query(default=None),
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    users = search_project_members(db, actor, project_id, search)
    return UserSearchResponse(users=user_search_results(users))


@router.get("/{user_id}", response_model=UserResponse)
def api_get_user(user_id: int, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    user = get_user(db, actor, user_id)
    return UserResponse(user=user_list_items(db, [user])[0])


@router.put("/{user_id}", response_model=UserResponse)
def api_update_user(
    user_id: int,
    payload: UserUpdate,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = update_user(db, actor, user_id, payload.model_dump(exclude_unset=True))
    return UserResponse(message="Profile updated successfully", user=user_list_items(db, [user])[0])


@router.put("/{user_id}/role", response_model=UserResponse)
def api_update_user_role(
    user_id: int,
    payload: UserRoleUpdate,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = update_user_role(db, actor, user_id, payload.role)
    return UserResponse(message="User role updated successfully", user=user_list_items(db, [user])[0])


@router.delete("/{user_id}", response_model=MessageResponse)
def api_delete_user(user_id: int, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    delete_user(db, actor, user_id)
    return MessageResponse(message="User deleted successfully")


@router.get("/{user_id}/stats", response_model=UserStatsResponse)
def api_user_stats(user_id: int, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return UserStatsResponse(stats=UserStats(**user_stats(db, actor, user_id)))

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.dependencies.dbDependecies import get_db
from app.common.responses import success_response, paginated_response
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext, UserCreate, UserUpdate, UserOut
from app.modules.users.service import UserService

users_router = APIRouter()

@users_router.get("/")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_admin())
):
    users, total = UserService(db).list_users(page, limit, search)
    return paginated_response([UserOut.from_user(u) for u in users], page, limit, total, "Users retrieved successfully")

@users_router.get("/{user_id}")
def get_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_self_or_admin())
):
    user = UserService(db).get_user(user_id)
    return success_response(UserOut.from_user(user), "User retrieved successfully")

@users_router.post("/", status_code=status.HTTP_201_CREATED)
def create_user(
    data: UserCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_admin())
):
    user = UserService(db).create_user(data)
    return success_response(UserOut.from_user(user), "User created successfully", status.HTTP_201_CREATED)

@users_router.put("/{user_id}")
def update_user(
    user_id: UUID,
    data: UserUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_self_or_admin())
):
    user = UserService(db).update_user(user_id, data, auth_context)
    return success_response(UserOut.from_user(user), "User updated successfully")

@users_router.delete("/{user_id}")
def delete_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_admin())
):
    UserService(db).delete_user(user_id, auth_context)
    return success_response({"deleted": True, "user_id": user_id}, "User deleted successfully")

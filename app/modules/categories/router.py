from fastapi import APIRouter, status, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.database.database import get_db
from app.common.responses import success_response, paginated_response
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.categories import service
from app.modules.categories.schemas import CategoryCreate, CategoryUpdate, CategoryOut

categories_router = APIRouter(tags=["Categories"])

@categories_router.post("/", status_code=status.HTTP_201_CREATED)
def create_category(
    data: CategoryCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    category_service = service.CategoryService(db)
    category = category_service.create_category(data)
    return success_response(CategoryOut.model_validate(category), "Category created successfully", status.HTTP_201_CREATED)

@categories_router.get("/")
def list_categories(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None),
    sortBy: Optional[str] = Query("name"),
    sortOrder: Optional[str] = Query("asc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    category_service = service.CategoryService(db)
    categories, total = category_service.list_categories(page, limit, search, sortBy, sortOrder)
    return paginated_response(
        [CategoryOut.model_validate(c) for c in categories], page, limit, total,
        "Categories retrieved successfully"
    )

@categories_router.get("/{category_id}")
def get_category(
    category_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    category_service = service.CategoryService(db)
    category = category_service.get_category(category_id)
    return success_response(CategoryOut.model_validate(category), "Category retrieved successfully")

@categories_router.put("/{category_id}")
def update_category(
    category_id: UUID,
    data: CategoryUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    category_service = service.CategoryService(db)
    category = category_service.update_category(category_id, data)
    return success_response(CategoryOut.model_validate(category), "Category updated successfully")

@categories_router.delete("/{category_id}")
def delete_category(
    category_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    category_service = service.CategoryService(db)
    category_service.delete_category(category_id)
    return success_response({"deleted": True, "category_id": category_id}, "Category deleted successfully")

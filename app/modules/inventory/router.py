from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional
from uuid import UUID

from app.dependencies.dbDependecies import get_db
from app.common.responses import success_response, paginated_response
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.inventory.models import MovementType, OperationStatus
from app.modules.inventory.schemas import StockMovementCreate, StockCorrectionCreate
from app.modules.inventory.service import InventoryService

stock_movements_router = APIRouter()
stock_additions_router = APIRouter()
stock_corrections_router = APIRouter()


@stock_movements_router.get("/")
def list_movements(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sortBy: Optional[str] = Query("created_at"),
    sortOrder: Optional[str] = Query("desc", pattern="^(asc|desc)$"),
    product_id: Optional[UUID] = Query(None),
    movement_type: Optional[MovementType] = Query(None),
    dateFrom: Optional[date] = Query(None),
    dateTo: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    """Historial de movimientos de inventario."""
    movements, total = InventoryService(db).get_movements(
        page, limit, product_id,
        movement_type.value if movement_type else None,
        dateFrom, dateTo, sortBy, sortOrder
    )
    return paginated_response(movements, page, limit, total, "Stock movements retrieved successfully")


@stock_movements_router.post("/", status_code=status.HTTP_201_CREATED)
def create_movement(
    data: StockMovementCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    movement = InventoryService(db).create_movement(data, auth_context.user_id)
    return success_response(movement, "Stock movement created successfully", status.HTTP_201_CREATED)


@stock_movements_router.get("/product/{product_id}")
def get_product_movements(
    product_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    movements = InventoryService(db).get_product_movements(product_id)
    return success_response(movements, "Product movements retrieved successfully")


@stock_movements_router.get("/summary/{product_id}")
def get_product_stock_summary(
    product_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    summary = InventoryService(db).get_product_stock_summary(product_id)
    return success_response(summary, "Stock summary retrieved successfully")


@stock_additions_router.get("/")
def list_stock_additions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    product_id: Optional[UUID] = Query(None),
    status_filter: Optional[OperationStatus] = Query(None, alias="status"),
    dateFrom: Optional[date] = Query(None),
    dateTo: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    additions, total = InventoryService(db).get_stock_additions(
        page, limit, product_id,
        status_filter.value if status_filter else None,
        dateFrom, dateTo
    )
    return paginated_response(additions, page, limit, total, "Stock additions retrieved successfully")


@stock_corrections_router.get("/")
def list_stock_corrections(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    product_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    corrections, total = InventoryService(db).get_stock_corrections(page, limit, product_id)
    return paginated_response(corrections, page, limit, total, "Stock corrections retrieved successfully")


@stock_corrections_router.post("/", status_code=status.HTTP_201_CREATED)
def create_stock_correction(
    data: StockCorrectionCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    correction = InventoryService(db).create_correction(data, auth_context.user_id)
    return success_response(correction, "Stock correction created successfully", status.HTTP_201_CREATED)

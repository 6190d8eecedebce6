from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.dependencies.dbDependecies import get_db
from app.common.responses import success_response, paginated_response
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.inventory.service import addition_to_response
from app.modules.products.schemas import ProductCreate, ProductUpdate, DamageCreate, StockAdditionCreate
from app.modules.products.service import ProductService, product_to_response, damage_to_response

products_router = APIRouter()


@products_router.get("/")
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None),
    category_id: Optional[UUID] = Query(None),
    low_stock: Optional[bool] = Query(None),
    expired: Optional[bool] = Query(None),
    price_min: Optional[float] = Query(None, ge=0),
    price_max: Optional[float] = Query(None, ge=0),
    sortBy: Optional[str] = Query("created_at"),
    sortOrder: Optional[str] = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    """
    Listar productos con filtros (búsqueda, categoría, stock bajo, vencidos, rango de precio).
    """
    products, total = ProductService(db).list_products(
        page, limit, search, category_id, low_stock, expired, price_min, price_max, sortBy, sortOrder
    )
    return paginated_response(
        [product_to_response(p) for p in products], page, limit, total, "Products retrieved successfully"
    )


@products_router.get("/low-stock")
def get_low_stock_products(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    products = ProductService(db).get_low_stock_products()
    return success_response([product_to_response(p) for p in products], "Low stock products retrieved successfully")


@products_router.get("/damaged")
def list_damaged_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    damages, total = ProductService(db).list_damaged(page, limit)
    return paginated_response(
        [damage_to_response(d) for d in damages], page, limit, total, "Damaged products retrieved successfully"
    )


@products_router.get("/{product_id}")
def get_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    product = ProductService(db).get_product(product_id)
    return success_response(product_to_response(product), "Product retrieved successfully")


@products_router.post("/", status_code=status.HTTP_201_CREATED)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    product = ProductService(db).create_product(data)
    return success_response(product_to_response(product), "Product created successfully", status.HTTP_201_CREATED)


@products_router.put("/{product_id}")
def update_product(
    product_id: UUID,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    product = ProductService(db).update_product(product_id, data)
    return success_response(product_to_response(product), "Product updated successfully")


@products_router.delete("/{product_id}")
def delete_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    ProductService(db).delete_product(product_id)
    return success_response({"deleted": True, "product_id": product_id}, "Product deleted successfully")


@products_router.post("/{product_id}/damage", status_code=status.HTTP_201_CREATED)
def record_damage(
    product_id: UUID,
    data: DamageCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    damage, product = ProductService(db).record_damage(product_id, data, auth_context.user_id)
    return success_response(
        {"damage": damage_to_response(damage), "product": product_to_response(product)},
        "Damaged product recorded successfully",
        status.HTTP_201_CREATED,
    )


@products_router.post("/{product_id}/stock", status_code=status.HTTP_201_CREATED)
def add_stock(
    product_id: UUID,
    data: StockAdditionCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    addition, product = ProductService(db).add_stock(product_id, data, auth_context.user_id)
    return success_response(
        {"addition": addition_to_response(addition), "product": product_to_response(product)},
        "Stock added successfully",
        status.HTTP_201_CREATED,
    )


@products_router.get("/{product_id}/stock-additions")
def list_product_stock_additions(
    product_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    additions = ProductService(db).list_stock_additions(product_id)
    return success_response([addition_to_response(a) for a in additions], "Stock additions retrieved successfully")

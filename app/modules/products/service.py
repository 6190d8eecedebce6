from sqlalchemy import and_
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, status
from datetime import date
from typing import Optional, Tuple, List
from uuid import UUID, uuid4
import logging

from app.common.responses import paginate, apply_sorting
from app.common.validators import as_decimal
from app.modules.categories.models import ProductCategory
from app.modules.inventory.models import (
    StockMovement, StockAddition, StockCorrection, MovementType, OperationStatus
)
from app.modules.products.models import Product, DamagedProduct
from app.modules.products.schemas import (
    ProductCreate, ProductUpdate, ProductOut, DamageCreate, DamagedProductOut, StockAdditionCreate
)

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": Product.name,
    "created_at": Product.created_at,
    "price_per_box": Product.price_per_box,
    "quantity_box": Product.quantity_box,
}


def product_to_response(product: Product) -> ProductOut:
    """Convierte un Product en ProductOut con nombre de categoría y campos derivados"""
    out = ProductOut.model_validate(product)
    out.category_name = product.category.name if product.category else None
    return out


def damage_to_response(damage: DamagedProduct) -> DamagedProductOut:
    out = DamagedProductOut.model_validate(damage)
    out.product_name = damage.product.name if damage.product else None
    return out


class ProductService:
    """Servicio de productos: catálogo, daños y entradas de stock"""

    def __init__(self, db: Session):
        self.db = db

    def _ensure_category(self, category_id: UUID):
        exists = self.db.query(ProductCategory.category_id).filter(
            ProductCategory.category_id == category_id
        ).first()
        if not exists:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")

    def get_product(self, product_id: UUID) -> Product:
        product = self.db.query(Product).filter(Product.product_id == product_id).first()
        if not product:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
        return product

    def list_products(
        self,
        page: int,
        limit: int,
        search: Optional[str] = None,
        category_id: Optional[UUID] = None,
        low_stock: Optional[bool] = None,
        expired: Optional[bool] = None,
        price_min: Optional[float] = None,
        price_max: Optional[float] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Tuple[List[Product], int]:
        query = self.db.query(Product)

        if search:
            query = query.filter(Product.name.ilike(f"%{search}%"))
        if category_id:
            query = query.filter(Product.category_id == category_id)
        if low_stock:
            query = query.filter(Product.quantity_box <= Product.boxed_low_stock_threshold)
        if expired:
            query = query.filter(and_(Product.expiry_date.isnot(None), Product.expiry_date < date.today()))
        if price_min is not None:
            query = query.filter(Product.price_per_box >= price_min)
        if price_max is not None:
            query = query.filter(Product.price_per_box <= price_max)

        query = apply_sorting(query, SORT_COLUMNS, sort_by, sort_order, "created_at")
        return paginate(query, page, limit)

    def get_low_stock_products(self) -> List[Product]:
        return (
            self.db.query(Product)
            .filter(Product.quantity_box <= Product.boxed_low_stock_threshold)
            .order_by(Product.quantity_box.asc())
            .all()
        )

    def list_damaged(self, page: int, limit: int) -> Tuple[List[DamagedProduct], int]:
        query = self.db.query(DamagedProduct).order_by(
            DamagedProduct.damaged_date.desc(), DamagedProduct.created_at.desc()
        )
        return paginate(query, page, limit)

    def create_product(self, data: ProductCreate) -> Product:
        try:
            self._ensure_category(data.category_id)
            product = Product(**data.model_dump())
            self.db.add(product)
            self.db.commit()
            self.db.refresh(product)
            logger.info(f"Product created: {product.name}")
            return product
        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Product could not be created")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating product: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create product"
            )

    def update_product(self, product_id: UUID, data: ProductUpdate) -> Product:
        try:
            product = self.get_product(product_id)
            update_dict = data.model_dump(exclude_unset=True)
            if not update_dict:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

            if update_dict.get("category_id") and update_dict["category_id"] != product.category_id:
                self._ensure_category(update_dict["category_id"])

            for field, value in update_dict.items():
                setattr(product, field, value)

            self.db.commit()
            self.db.refresh(product)
            return product
        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Product could not be updated")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating product {product_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update product"
            )

    def delete_product(self, product_id: UUID) -> None:
        """
        Elimina el producto junto con sus movimientos, entradas, correcciones y daños.
        """
        product = self.get_product(product_id)
        try:
            self.db.query(StockMovement).filter(StockMovement.product_id == product_id).delete(synchronize_session=False)
            self.db.query(StockAddition).filter(StockAddition.product_id == product_id).delete(synchronize_session=False)
            self.db.query(StockCorrection).filter(StockCorrection.product_id == product_id).delete(synchronize_session=False)
            self.db.query(DamagedProduct).filter(DamagedProduct.product_id == product_id).delete(synchronize_session=False)
            self.db.delete(product)
            self.db.commit()
            logger.info(f"Product deleted: {product_id}")
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Product has related sales and cannot be deleted"
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting product {product_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete product"
            )

    def record_damage(self, product_id: UUID, data: DamageCreate, user_id: UUID) -> Tuple[DamagedProduct, Product]:
        """
        Registrar producto dañado: crea el registro de daño, un movimiento
        `damaged` con cambios negativos y descuenta el stock.
        """
        product = self.get_product(product_id)
        boxes = data.damaged_boxes
        kg = as_decimal(data.damaged_kg)

        if boxes > product.quantity_box:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot damage {boxes} boxes, only {product.quantity_box} available"
            )
        if kg > as_decimal(product.quantity_kg):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot damage {kg}kg, only {product.quantity_kg}kg available"
            )

        try:
            loss_value = boxes * as_decimal(product.price_per_box) + kg * as_decimal(product.price_per_kg)
            damage = DamagedProduct(
                damage_id=uuid4(),
                product_id=product.product_id,
                damaged_boxes=boxes,
                damaged_kg=kg,
                damaged_reason=data.damaged_reason,
                description=data.description,
                damaged_date=data.damaged_date or date.today(),
                loss_value=loss_value,
                damaged_approval=True,
                reported_by=user_id,
            )
            movement = StockMovement(
                product_id=product.product_id,
                movement_type=MovementType.DAMAGED.value,
                box_change=-boxes,
                kg_change=-kg,
                damaged_id=damage.damage_id,
                reason=f"Damaged: {data.damaged_reason}",
                status=OperationStatus.COMPLETED.value,
                performed_by=user_id,
            )
            product.quantity_box = product.quantity_box - boxes
            product.quantity_kg = as_decimal(product.quantity_kg) - kg

            self.db.add(damage)
            self.db.add(movement)
            self.db.commit()
            self.db.refresh(damage)
            self.db.refresh(product)
            logger.info(f"Damage recorded for product {product.name}: {boxes} boxes, {kg}kg")
            return damage, product
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error recording damage for product {product_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to record damaged product"
            )

    def add_stock(self, product_id: UUID, data: StockAdditionCreate, user_id: UUID) -> Tuple[StockAddition, Product]:
        """
        Entrada de mercancía: crea la adición (completed), un movimiento
        `new_stock` y aumenta el stock.
        """
        product = self.get_product(product_id)
        kg = as_decimal(data.kg_added)
        delivery_label = data.delivery_date.isoformat() if data.delivery_date else "Today"

        try:
            addition = StockAddition(
                addition_id=uuid4(),
                product_id=product.product_id,
                boxes_added=data.boxes_added,
                kg_added=kg,
                total_cost=data.total_cost,
                delivery_date=data.delivery_date or date.today(),
                status=OperationStatus.COMPLETED.value,
                performed_by=user_id,
            )
            movement = StockMovement(
                product_id=product.product_id,
                movement_type=MovementType.NEW_STOCK.value,
                box_change=data.boxes_added,
                kg_change=kg,
                stock_addition_id=addition.addition_id,
                reason=f"Stock addition - Delivery: {delivery_label}",
                status=OperationStatus.COMPLETED.value,
                performed_by=user_id,
            )
            product.quantity_box = product.quantity_box + data.boxes_added
            product.quantity_kg = as_decimal(product.quantity_kg) + kg

            self.db.add(addition)
            self.db.add(movement)
            self.db.commit()
            self.db.refresh(addition)
            self.db.refresh(product)
            logger.info(f"Stock added to {product.name}: {data.boxes_added} boxes, {kg}kg")
            return addition, product
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error adding stock to product {product_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to add stock"
            )

    def list_stock_additions(self, product_id: UUID) -> List[StockAddition]:
        self.get_product(product_id)
        return (
            self.db.query(StockAddition)
            .filter(StockAddition.product_id == product_id)
            .order_by(StockAddition.created_at.desc())
            .all()
        )

from sqlalchemy import func
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from datetime import date
from typing import Optional, Tuple, List
from uuid import UUID, uuid4
import logging

from app.common.responses import paginate, apply_sorting
from app.common.validators import as_decimal, start_of_day, end_of_day
from app.modules.inventory.models import (
    StockMovement, StockAddition, StockCorrection, MovementType, OperationStatus
)
from app.modules.inventory.schemas import (
    StockMovementCreate, StockMovementOut, StockAdditionOut, StockCorrectionCreate,
    StockCorrectionOut, ProductStockSummary, StockLevel, MovementTotals
)
from app.modules.products.models import Product

logger = logging.getLogger(__name__)

MOVEMENT_SORT_COLUMNS = {
    "created_at": StockMovement.created_at,
    "movement_type": StockMovement.movement_type,
    "box_change": StockMovement.box_change,
}


def addition_to_response(addition: StockAddition) -> StockAdditionOut:
    out = StockAdditionOut.model_validate(addition)
    out.product_name = addition.product.name if addition.product else None
    return out


class InventoryService:
    """Movimientos de inventario, entradas y correcciones de stock"""

    def __init__(self, db: Session):
        self.db = db

    def _get_product(self, product_id: UUID) -> Product:
        product = self.db.query(Product).filter(Product.product_id == product_id).first()
        if not product:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
        return product

    @staticmethod
    def _apply_change(product: Product, box_change: int, kg_change) -> None:
        """Aplica un cambio de stock; 400 si el resultado fuera negativo."""
        new_boxes = product.quantity_box + box_change
        new_kg = as_decimal(product.quantity_kg) + as_decimal(kg_change)
        if new_boxes < 0 or new_kg < 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Stock cannot be negative (boxes: {new_boxes}, kg: {new_kg})"
            )
        product.quantity_box = new_boxes
        product.quantity_kg = new_kg

    def _movement_to_output(self, movement: StockMovement) -> StockMovementOut:
        out = StockMovementOut.model_validate(movement)
        out.product_name = movement.product.name if movement.product else None
        return out

    def _correction_to_output(self, correction: StockCorrection) -> StockCorrectionOut:
        out = StockCorrectionOut.model_validate(correction)
        out.product_name = correction.product.name if correction.product else None
        return out

    def get_movements(
        self,
        page: int,
        limit: int,
        product_id: Optional[UUID] = None,
        movement_type: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Tuple[List[StockMovementOut], int]:
        query = self.db.query(StockMovement)
        if product_id:
            query = query.filter(StockMovement.product_id == product_id)
        if movement_type:
            query = query.filter(StockMovement.movement_type == movement_type)
        if date_from:
            query = query.filter(StockMovement.created_at >= start_of_day(date_from))
        if date_to:
            query = query.filter(StockMovement.created_at <= end_of_day(date_to))

        query = apply_sorting(query, MOVEMENT_SORT_COLUMNS, sort_by, sort_order, "created_at")
        movements, total = paginate(query, page, limit)
        return [self._movement_to_output(m) for m in movements], total

    def get_product_movements(self, product_id: UUID) -> List[StockMovementOut]:
        self._get_product(product_id)
        movements = (
            self.db.query(StockMovement)
            .filter(StockMovement.product_id == product_id)
            .order_by(StockMovement.created_at.desc())
            .all()
        )
        return [self._movement_to_output(m) for m in movements]

    def create_movement(self, movement_data: StockMovementCreate, user_id: UUID) -> StockMovementOut:
        """Registrar un movimiento manual y aplicarlo al stock del producto."""
        product = self._get_product(movement_data.product_id)
        self._apply_change(product, movement_data.box_change, movement_data.kg_change)

        try:
            movement = StockMovement(
                product_id=product.product_id,
                movement_type=movement_data.movement_type,
                box_change=movement_data.box_change,
                kg_change=movement_data.kg_change,
                reason=movement_data.reason,
                status=movement_data.status,
                performed_by=user_id,
            )
            self.db.add(movement)
            self.db.commit()
            self.db.refresh(movement)
            logger.info(
                f"Stock movement {movement.movement_type} on {product.name}: "
                f"{movement.box_change} boxes, {movement.kg_change}kg"
            )
            return self._movement_to_output(movement)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating stock movement: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create stock movement"
            )

    def get_product_stock_summary(self, product_id: UUID) -> ProductStockSummary:
        """Resumen de stock de un producto. Las ventas no son movimientos: totalOut es 0."""
        product = self._get_product(product_id)

        def _sum(movement_type: str, column):
            return self.db.query(func.coalesce(func.sum(column), 0)).filter(
                StockMovement.product_id == product_id,
                StockMovement.movement_type == movement_type,
            ).scalar() or 0

        total_in = _sum(MovementType.NEW_STOCK.value, StockMovement.box_change)
        total_damaged = _sum(MovementType.DAMAGED.value, func.abs(StockMovement.box_change))
        total_corrections = _sum(MovementType.STOCK_CORRECTION.value, StockMovement.box_change)

        return ProductStockSummary(
            productId=product.product_id,
            productName=product.name,
            currentStock=StockLevel(boxes=product.quantity_box, kg=as_decimal(product.quantity_kg)),
            lowStockThreshold=product.boxed_low_stock_threshold,
            isLowStock=product.is_low_stock,
            movements=MovementTotals(
                totalIn=int(total_in),
                totalOut=0,
                totalDamaged=int(total_damaged),
                totalCorrections=int(total_corrections),
            ),
        )

    def get_stock_additions(
        self,
        page: int,
        limit: int,
        product_id: Optional[UUID] = None,
        addition_status: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> Tuple[List[StockAdditionOut], int]:
        query = self.db.query(StockAddition)
        if product_id:
            query = query.filter(StockAddition.product_id == product_id)
        if addition_status:
            query = query.filter(StockAddition.status == addition_status)
        if date_from:
            query = query.filter(StockAddition.created_at >= start_of_day(date_from))
        if date_to:
            query = query.filter(StockAddition.created_at <= end_of_day(date_to))
        query = query.order_by(StockAddition.created_at.desc())
        additions, total = paginate(query, page, limit)
        return [addition_to_response(a) for a in additions], total

    def get_stock_corrections(
        self,
        page: int,
        limit: int,
        product_id: Optional[UUID] = None,
    ) -> Tuple[List[StockCorrectionOut], int]:
        query = self.db.query(StockCorrection)
        if product_id:
            query = query.filter(StockCorrection.product_id == product_id)
        query = query.order_by(StockCorrection.created_at.desc())
        corrections, total = paginate(query, page, limit)
        return [self._correction_to_output(c) for c in corrections], total

    def create_correction(self, data: StockCorrectionCreate, user_id: UUID) -> StockCorrectionOut:
        """
        Corrección de stock: registra la corrección, un movimiento
        `stock_correction` y aplica el ajuste (sin permitir stock negativo).
        """
        product = self._get_product(data.product_id)
        self._apply_change(product, data.box_adjustment, data.kg_adjustment)

        try:
            correction = StockCorrection(
                correction_id=uuid4(),
                product_id=product.product_id,
                box_adjustment=data.box_adjustment,
                kg_adjustment=data.kg_adjustment,
                correction_reason=data.correction_reason,
                correction_date=data.correction_date or date.today(),
                status=OperationStatus.COMPLETED.value,
                performed_by=user_id,
            )
            movement = StockMovement(
                product_id=product.product_id,
                movement_type=MovementType.STOCK_CORRECTION.value,
                box_change=data.box_adjustment,
                kg_change=data.kg_adjustment,
                correction_id=correction.correction_id,
                reason=f"Stock correction: {data.correction_reason}",
                status=OperationStatus.COMPLETED.value,
                performed_by=user_id,
            )
            self.db.add(correction)
            self.db.add(movement)
            self.db.commit()
            self.db.refresh(correction)
            logger.info(f"Stock correction on {product.name}: {data.box_adjustment} boxes, {data.kg_adjustment}kg")
            return self._correction_to_output(correction)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating stock correction: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create stock correction"
            )

from pydantic import BaseModel, Field, model_validator
from typing import Optional
from uuid import UUID
from datetime import date, datetime
from decimal import Decimal

from app.modules.inventory.models import MovementType, OperationStatus


class StockMovementCreate(BaseModel):
    """Movimiento manual; el cambio se aplica al stock del producto."""
    product_id: UUID
    movement_type: MovementType
    box_change: int = 0
    kg_change: Decimal = Decimal("0")
    reason: Optional[str] = Field(None, max_length=500)
    status: OperationStatus = OperationStatus.COMPLETED

    @model_validator(mode='after')
    def change_required(self):
        if self.box_change == 0 and self.kg_change == 0:
            raise ValueError("At least one of box_change or kg_change must be non-zero")
        return self

    class Config:
        use_enum_values = True


class StockMovementOut(BaseModel):
    movement_id: UUID
    product_id: UUID
    product_name: Optional[str] = None
    movement_type: str
    box_change: int
    kg_change: Decimal
    damaged_id: Optional[UUID] = None
    stock_addition_id: Optional[UUID] = None
    correction_id: Optional[UUID] = None
    reason: Optional[str] = None
    status: str
    performed_by: Optional[UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StockAdditionOut(BaseModel):
    addition_id: UUID
    product_id: UUID
    product_name: Optional[str] = None
    boxes_added: int
    kg_added: Decimal
    total_cost: Decimal
    delivery_date: date
    status: str
    performed_by: Optional[UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StockCorrectionCreate(BaseModel):
    product_id: UUID
    box_adjustment: int = 0
    kg_adjustment: Decimal = Decimal("0")
    correction_reason: str = Field(..., min_length=3, max_length=500)
    correction_date: Optional[date] = None

    @model_validator(mode='after')
    def adjustment_required(self):
        if self.box_adjustment == 0 and self.kg_adjustment == 0:
            raise ValueError("At least one of box_adjustment or kg_adjustment must be non-zero")
        return self


class StockCorrectionOut(BaseModel):
    correction_id: UUID
    product_id: UUID
    product_name: Optional[str] = None
    box_adjustment: int
    kg_adjustment: Decimal
    correction_reason: str
    correction_date: date
    status: str
    performed_by: Optional[UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StockLevel(BaseModel):
    boxes: int
    kg: Decimal


class MovementTotals(BaseModel):
    totalIn: int
    totalOut: int
    totalDamaged: int
    totalCorrections: int


class ProductStockSummary(BaseModel):
    productId: UUID
    productName: str
    currentStock: StockLevel
    lowStockThreshold: int
    isLowStock: bool
    movements: MovementTotals

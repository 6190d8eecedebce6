from pydantic import BaseModel, Field, model_validator
from typing import Optional
from uuid import UUID
from datetime import date, datetime
from decimal import Decimal


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    category_id: UUID
    quantity_box: int = Field(0, ge=0)
    box_to_kg_ratio: Decimal = Field(Decimal("20"), gt=0)
    quantity_kg: Decimal = Field(Decimal("0"), ge=0)
    cost_per_box: Decimal = Field(Decimal("0"), ge=0)
    cost_per_kg: Decimal = Field(Decimal("0"), ge=0)
    price_per_box: Decimal = Field(Decimal("0"), ge=0)
    price_per_kg: Decimal = Field(Decimal("0"), ge=0)
    boxed_low_stock_threshold: int = Field(10, ge=0)
    expiry_date: Optional[date] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category_id: Optional[UUID] = None
    quantity_box: Optional[int] = Field(None, ge=0)
    box_to_kg_ratio: Optional[Decimal] = Field(None, gt=0)
    quantity_kg: Optional[Decimal] = Field(None, ge=0)
    cost_per_box: Optional[Decimal] = Field(None, ge=0)
    cost_per_kg: Optional[Decimal] = Field(None, ge=0)
    price_per_box: Optional[Decimal] = Field(None, ge=0)
    price_per_kg: Optional[Decimal] = Field(None, ge=0)
    boxed_low_stock_threshold: Optional[int] = Field(None, ge=0)
    expiry_date: Optional[date] = None


class ProductOut(BaseModel):
    product_id: UUID
    name: str
    category_id: UUID
    category_name: Optional[str] = None
    quantity_box: int
    box_to_kg_ratio: Decimal
    quantity_kg: Decimal
    cost_per_box: Decimal
    cost_per_kg: Decimal
    price_per_box: Decimal
    price_per_kg: Decimal
    profit_per_box: Decimal
    profit_per_kg: Decimal
    boxed_low_stock_threshold: int
    expiry_date: Optional[date] = None
    days_left: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DamageCreate(BaseModel):
    damaged_boxes: int = Field(0, ge=0)
    damaged_kg: Decimal = Field(Decimal("0"), ge=0)
    damaged_reason: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    damaged_date: Optional[date] = None

    @model_validator(mode='after')
    def quantity_required(self):
        if self.damaged_boxes <= 0 and self.damaged_kg <= 0:
            raise ValueError("At least one of damaged_boxes or damaged_kg must be greater than 0")
        return self


class DamagedProductOut(BaseModel):
    damage_id: UUID
    product_id: UUID
    product_name: Optional[str] = None
    damaged_boxes: int
    damaged_kg: Decimal
    damaged_reason: str
    description: Optional[str] = None
    damaged_date: date
    loss_value: Decimal
    damaged_approval: bool
    approved_by: Optional[UUID] = None
    approved_date: Optional[datetime] = None
    reported_by: Optional[UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StockAdditionCreate(BaseModel):
    boxes_added: int = Field(0, ge=0)
    kg_added: Decimal = Field(Decimal("0"), ge=0)
    total_cost: Decimal = Field(Decimal("0"), ge=0)
    delivery_date: Optional[date] = None

    @model_validator(mode='after')
    def quantity_required(self):
        if self.boxes_added <= 0 and self.kg_added <= 0:
            raise ValueError("At least one of boxes_added or kg_added must be greater than 0")
        return self

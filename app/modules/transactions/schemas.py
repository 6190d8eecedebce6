from pydantic import BaseModel, Field
from typing import Optional, Dict
from uuid import UUID
from datetime import datetime
from decimal import Decimal

from app.modules.sales.models import PaymentStatus, PaymentMethod
from app.modules.deposits.models import DepositType


class TransactionCreate(BaseModel):
    sale_id: UUID
    date_time: Optional[datetime] = None
    product_name: str = Field(..., min_length=1, max_length=200)
    client_name: str = Field(..., min_length=1, max_length=100)
    boxes_quantity: int = Field(0, ge=0)
    kg_quantity: Decimal = Field(Decimal("0"), ge=0)
    total_amount: Decimal = Field(..., ge=0)
    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None
    deposit_id: Optional[str] = Field(None, max_length=100)
    deposit_type: Optional[DepositType] = None
    account_number: Optional[str] = Field(None, max_length=50)
    reference: Optional[str] = Field(None, max_length=100)
    image_url: Optional[str] = Field(None, max_length=500)

    class Config:
        use_enum_values = True


class TransactionUpdate(BaseModel):
    product_name: Optional[str] = Field(None, min_length=1, max_length=200)
    client_name: Optional[str] = Field(None, min_length=1, max_length=100)
    boxes_quantity: Optional[int] = Field(None, ge=0)
    kg_quantity: Optional[Decimal] = Field(None, ge=0)
    total_amount: Optional[Decimal] = Field(None, ge=0)
    payment_status: Optional[PaymentStatus] = None
    payment_method: Optional[PaymentMethod] = None
    deposit_id: Optional[str] = Field(None, max_length=100)
    deposit_type: Optional[DepositType] = None
    account_number: Optional[str] = Field(None, max_length=50)
    reference: Optional[str] = Field(None, max_length=100)
    image_url: Optional[str] = Field(None, max_length=500)

    class Config:
        use_enum_values = True


class TransactionOut(BaseModel):
    transaction_id: UUID
    sale_id: Optional[UUID] = None
    date_time: Optional[datetime] = None
    product_name: str
    client_name: str
    boxes_quantity: int
    kg_quantity: Decimal
    total_amount: Decimal
    payment_status: str
    payment_method: Optional[str] = None
    deposit_id: Optional[str] = None
    deposit_type: Optional[str] = None
    account_number: Optional[str] = None
    reference: Optional[str] = None
    image_url: Optional[str] = None
    created_by: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_by: Optional[UUID] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TransactionStats(BaseModel):
    total_transactions: int
    total_amount: float
    paid_transactions: int
    pending_transactions: int
    partial_transactions: int
    paid_amount: float
    pending_amount: float
    partial_amount: float
    payment_methods: Dict[str, int]
    payment_method_amounts: Dict[str, float]

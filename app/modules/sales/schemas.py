from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional, Any, Dict
from uuid import UUID
from datetime import datetime
from decimal import Decimal

from app.modules.sales.models import PaymentStatus, PaymentMethod, AuditType


class SaleCreate(BaseModel):
    product_id: UUID
    boxes_quantity: int = Field(0, ge=0)
    kg_quantity: Decimal = Field(Decimal("0"), ge=0)
    box_price: Decimal = Field(..., ge=0)
    kg_price: Decimal = Field(..., ge=0)
    payment_method: PaymentMethod
    payment_status: PaymentStatus = PaymentStatus.PENDING
    amount_paid: Decimal = Field(Decimal("0"), ge=0)
    client_id: Optional[UUID] = None
    client_name: Optional[str] = Field(None, max_length=100)
    email_address: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=15)

    @model_validator(mode='after')
    def check_quantities_and_client(self):
        if self.boxes_quantity <= 0 and self.kg_quantity <= 0:
            raise ValueError("At least one of boxes_quantity or kg_quantity must be greater than 0")
        if self.payment_status in (PaymentStatus.PENDING.value, PaymentStatus.PARTIAL.value):
            if not self.client_name or not self.client_name.strip():
                raise ValueError("Client name is required for pending or partial payments")
        if self.client_name is not None:
            self.client_name = self.client_name.strip() or None
        return self

    class Config:
        use_enum_values = True


class SaleUpdate(BaseModel):
    """Cambios solicitados sobre una venta; generan un registro de auditoría pendiente."""
    boxes_quantity: Optional[int] = Field(None, ge=0)
    kg_quantity: Optional[Decimal] = Field(None, ge=0)
    amount_paid: Optional[Decimal] = Field(None, ge=0)
    payment_status: Optional[PaymentStatus] = None
    payment_method: Optional[PaymentMethod] = None
    client_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email_address: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=15)
    reason: str = Field(..., min_length=1, max_length=500)

    class Config:
        use_enum_values = True


class SaleDeleteRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class SaleOut(BaseModel):
    id: UUID
    product_id: UUID
    product_name: Optional[str] = None
    boxes_quantity: int
    kg_quantity: Decimal
    box_price: Decimal
    kg_price: Decimal
    total_amount: Decimal
    amount_paid: Decimal
    remaining_amount: Decimal
    date_time: Optional[datetime] = None
    payment_status: str
    payment_method: Optional[str] = None
    performed_by: Optional[UUID] = None
    client_id: Optional[UUID] = None
    client_name: Optional[str] = None
    email_address: Optional[str] = None
    phone: Optional[str] = None

    class Config:
        from_attributes = True


class AuditCreate(BaseModel):
    sale_id: UUID
    audit_type: AuditType
    boxes_change: int = 0
    kg_change: Decimal = Decimal("0")
    reason: str = Field(..., min_length=1, max_length=500)
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None

    class Config:
        use_enum_values = True


class AuditDecision(BaseModel):
    approval_reason: str = Field(..., min_length=1, max_length=500)


class AuditUserInfo(BaseModel):
    id: UUID
    name: str
    email: str


class AuditOut(BaseModel):
    audit_id: UUID
    timestamp: Optional[datetime] = None
    sale_id: Optional[UUID] = None
    audit_type: str
    boxes_change: int
    kg_change: Decimal
    reason: str
    performed_by: Optional[UUID] = None
    approval_status: str
    approved_by: Optional[UUID] = None
    approval_timestamp: Optional[datetime] = None
    approval_reason: Optional[str] = None
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    performed_by_user: Optional[AuditUserInfo] = None
    approved_by_user: Optional[AuditUserInfo] = None
    product_info: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True

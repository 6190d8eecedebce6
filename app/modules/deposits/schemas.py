from pydantic import BaseModel, Field
from typing import Optional, Dict
from uuid import UUID
from datetime import datetime
from decimal import Decimal

from app.modules.deposits.models import DepositType, DepositApproval


class DepositCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    deposit_type: DepositType
    account_name: str = Field(..., min_length=1, max_length=255)
    account_number: Optional[str] = Field(None, max_length=50)
    to_recipient: Optional[str] = Field(None, max_length=100)
    date_time: Optional[datetime] = None
    deposit_image_url: Optional[str] = Field(None, max_length=500)

    class Config:
        use_enum_values = True


class DepositUpdate(BaseModel):
    amount: Optional[Decimal] = Field(None, gt=0)
    deposit_type: Optional[DepositType] = None
    account_name: Optional[str] = Field(None, min_length=1, max_length=255)
    account_number: Optional[str] = Field(None, max_length=50)
    to_recipient: Optional[str] = Field(None, max_length=100)
    date_time: Optional[datetime] = None
    deposit_image_url: Optional[str] = Field(None, max_length=500)
    approval: Optional[DepositApproval] = None

    class Config:
        use_enum_values = True


class DepositOut(BaseModel):
    deposit_id: UUID
    date_time: Optional[datetime] = None
    deposit_type: str
    account_name: str
    account_number: Optional[str] = None
    amount: Decimal
    to_recipient: Optional[str] = None
    deposit_image_url: Optional[str] = None
    approval: str
    created_by: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_by: Optional[UUID] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DepositStats(BaseModel):
    totalDeposits: int
    totalAmount: float
    depositsByType: Dict[str, int]
    amountByType: Dict[str, float]
    depositsByApproval: Dict[str, int]

from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID
from datetime import date as date_type, datetime
from decimal import Decimal

from app.modules.expenses.models import ExpenseStatus


# Expense categories

class ExpenseCategoryCreate(BaseModel):
    category_name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    budget: Decimal = Field(Decimal("0"), ge=0)


class ExpenseCategoryUpdate(BaseModel):
    category_name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    budget: Optional[Decimal] = Field(None, ge=0)


class ExpenseCategoryOut(BaseModel):
    category_id: UUID
    category_name: str
    description: Optional[str] = None
    budget: Decimal
    created_by: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Expenses

class ExpenseCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    category_id: UUID
    amount: Decimal = Field(..., gt=0)
    date: date_type
    status: ExpenseStatus = ExpenseStatus.PENDING
    receipt_url: Optional[str] = Field(None, max_length=500)

    class Config:
        use_enum_values = True


class ExpenseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    category_id: Optional[UUID] = None
    amount: Optional[Decimal] = Field(None, gt=0)
    date: Optional[date_type] = None
    status: Optional[ExpenseStatus] = None
    receipt_url: Optional[str] = Field(None, max_length=500)

    class Config:
        use_enum_values = True


class ExpenseOut(BaseModel):
    expense_id: UUID
    title: str
    category_id: UUID
    category_name: Optional[str] = None
    amount: Decimal
    date: date_type
    added_by: Optional[UUID] = None
    status: str
    receipt_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

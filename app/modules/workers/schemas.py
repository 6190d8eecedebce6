from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, Any
from uuid import UUID
from datetime import datetime
from decimal import Decimal

from app.common.validators import validate_phone


def _check_phone(v):
    if v is None or v.strip() == "":
        return None
    if not validate_phone(v):
        raise ValueError('Invalid phone number format')
    return v.strip()


class WorkerCreate(BaseModel):
    full_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone_number: Optional[str] = Field(None, max_length=20)
    monthly_salary: Optional[Decimal] = Field(None, ge=0)
    identification_image_url: Optional[str] = None

    @field_validator('phone_number')
    @classmethod
    def validate_phone_number(cls, v):
        return _check_phone(v)


class WorkerUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, max_length=20)
    monthly_salary: Optional[Decimal] = Field(None, ge=0)
    identification_image_url: Optional[str] = None

    @field_validator('phone_number')
    @classmethod
    def validate_phone_number(cls, v):
        return _check_phone(v)


class WorkerOut(BaseModel):
    worker_id: UUID
    full_name: str
    email: str
    phone_number: Optional[str] = None
    identification_image_url: Optional[str] = None
    monthly_salary: Optional[Decimal] = None
    total_revenue_generated: Optional[Decimal] = None
    recent_login_history: Optional[Any] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

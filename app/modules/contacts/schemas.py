"""
Schemas Pydantic para el módulo de Contactos
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from uuid import UUID
from datetime import datetime

from app.modules.contacts.models import ContactType, PreferredContactMethod


class ContactBase(BaseModel):
    company_name: Optional[str] = Field(None, max_length=200)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=1000)


class ContactCreate(ContactBase):
    """Schema para crear contacto"""
    contact_name: str = Field(..., min_length=1, max_length=100)
    contact_type: ContactType = ContactType.CUSTOMER
    preferred_contact_method: PreferredContactMethod = PreferredContactMethod.EMAIL
    email_notifications: bool = True

    class Config:
        use_enum_values = True


class ContactUpdate(ContactBase):
    """Schema para actualizar contacto; todos los campos son opcionales"""
    contact_name: Optional[str] = Field(None, min_length=1, max_length=100)
    contact_type: Optional[ContactType] = None
    preferred_contact_method: Optional[PreferredContactMethod] = None
    email_notifications: Optional[bool] = None

    class Config:
        use_enum_values = True


class ContactOut(BaseModel):
    contact_id: UUID
    company_name: Optional[str] = None
    contact_name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    contact_type: str
    address: Optional[str] = None
    email_verified: bool = False
    preferred_contact_method: str
    email_notifications: bool = True
    last_contacted: Optional[datetime] = None
    total_messages_sent: int = 0
    notes: Optional[str] = None
    added_by: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

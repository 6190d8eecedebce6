"""
Modelos SQLAlchemy para el módulo de Contactos

Proveedores y clientes del negocio, con preferencias de comunicación
y contadores de mensajes enviados.
"""

from app.database.database import Base
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Integer, Text, Uuid
from uuid import uuid4
from app.common.mixins import TimestampMixin
import enum


# ===== ENUMS =====

class ContactType(str, enum.Enum):
    """Tipos de contacto"""
    SUPPLIER = "supplier"
    CUSTOMER = "customer"


class PreferredContactMethod(str, enum.Enum):
    EMAIL = "email"
    PHONE = "phone"
    BOTH = "both"


# ===== MODELOS =====

class Contact(Base, TimestampMixin):
    """
    Contacto del negocio (proveedor o cliente).
    El email es único cuando se informa.
    """
    __tablename__ = "contacts"

    contact_id = Column(Uuid, primary_key=True, default=uuid4)
    company_name = Column(String(200), nullable=True)
    contact_name = Column(String(100), nullable=False, index=True)
    email = Column(String(255), nullable=True, unique=True)
    phone_number = Column(String(20), nullable=True)
    contact_type = Column(String(20), nullable=False, default=ContactType.CUSTOMER.value, index=True)
    address = Column(Text, nullable=True)
    email_verified = Column(Boolean, nullable=False, default=False)
    preferred_contact_method = Column(String(10), nullable=False, default=PreferredContactMethod.EMAIL.value)
    email_notifications = Column(Boolean, nullable=False, default=True)
    last_contacted = Column(DateTime(timezone=True), nullable=True)
    total_messages_sent = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    added_by = Column(Uuid, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)

    @property
    def id(self):
        return self.contact_id

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Numeric, JSON, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from enum import Enum
import uuid

from app.database.database import Base
from app.common.mixins import TimestampMixin


class PaymentStatus(str, Enum):
    PAID = "paid"
    PENDING = "pending"
    PARTIAL = "partial"


class PaymentMethod(str, Enum):
    MOMO_PAY = "momo_pay"
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"


class AuditType(str, Enum):
    QUANTITY_CHANGE = "quantity_change"
    PAYMENT_UPDATE = "payment_update"
    DELETION = "deletion"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Sale(Base):
    __tablename__ = "sales"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id = Column(Uuid, ForeignKey("products.product_id"), nullable=False, index=True)
    boxes_quantity = Column(Integer, nullable=False, default=0)
    kg_quantity = Column(Numeric(12, 3), nullable=False, default=0)
    box_price = Column(Numeric(12, 2), nullable=False, default=0)
    kg_price = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(14, 2), nullable=False, default=0)
    amount_paid = Column(Numeric(14, 2), nullable=False, default=0)
    remaining_amount = Column(Numeric(14, 2), nullable=False, default=0)
    date_time = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True)
    payment_method = Column(String(20), nullable=True)
    performed_by = Column(Uuid, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    client_id = Column(Uuid, nullable=True)
    client_name = Column(String(100), nullable=True)
    email_address = Column(String(150), nullable=True)
    phone = Column(String(20), nullable=True)

    product = relationship("Product", lazy="joined")


class SaleAudit(Base, TimestampMixin):
    """
    Solicitud de cambio sobre una venta. Las ediciones y borrados de ventas
    quedan pendientes hasta que un manager las aprueba o rechaza.
    """
    __tablename__ = "sales_audit"

    audit_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    sale_id = Column(Uuid, ForeignKey("sales.id", ondelete="SET NULL"), nullable=True, index=True)
    audit_type = Column(String(30), nullable=False)
    boxes_change = Column(Integer, nullable=False, default=0)
    kg_change = Column(Numeric(12, 3), nullable=False, default=0)
    reason = Column(Text, nullable=False)
    performed_by = Column(Uuid, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    approval_status = Column(String(20), nullable=False, default=ApprovalStatus.PENDING.value, index=True)
    approved_by = Column(Uuid, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    approval_timestamp = Column(DateTime(timezone=True), nullable=True)
    approval_reason = Column(Text, nullable=True)
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)

    @property
    def id(self):
        return self.audit_id

from sqlalchemy import Column, String, DateTime, ForeignKey, Numeric, Uuid, CheckConstraint
from sqlalchemy.sql import func
from enum import Enum
import uuid

from app.database.database import Base
from app.common.mixins import TimestampMixin


class DepositType(str, Enum):
    MOMO = "momo"
    BANK = "bank"
    BOSS = "boss"


class DepositApproval(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Deposit(Base, TimestampMixin):
    """Depósito de dinero hecho por un usuario (mobile money, banco o entrega al dueño)."""
    __tablename__ = "deposits"

    deposit_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    date_time = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    deposit_type = Column(String(10), nullable=False, index=True)
    account_name = Column(String(255), nullable=False)
    account_number = Column(String(50), nullable=True)
    amount = Column(Numeric(14, 2), nullable=False)
    to_recipient = Column(String(100), nullable=True)
    deposit_image_url = Column(String(500), nullable=True)
    approval = Column(String(20), nullable=False, default=DepositApproval.PENDING.value, index=True)
    created_by = Column(Uuid, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True, index=True)
    updated_by = Column(Uuid, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_deposits_amount_positive"),
    )

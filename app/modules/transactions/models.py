from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric, Uuid
from sqlalchemy.sql import func
import uuid

from app.database.database import Base
from app.common.mixins import TimestampMixin


class Transaction(Base, TimestampMixin):
    """
    Registro de cobro asociado a una venta, opcionalmente con los datos
    del depósito donde se consignó el dinero.
    """
    __tablename__ = "transactions"

    transaction_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    sale_id = Column(Uuid, ForeignKey("sales.id", ondelete="SET NULL"), nullable=True, index=True)
    date_time = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    product_name = Column(String(200), nullable=False)
    client_name = Column(String(100), nullable=False)
    boxes_quantity = Column(Integer, nullable=False, default=0)
    kg_quantity = Column(Numeric(12, 3), nullable=False, default=0)
    total_amount = Column(Numeric(14, 2), nullable=False, default=0)
    payment_status = Column(String(20), nullable=False, index=True)
    payment_method = Column(String(20), nullable=True)
    deposit_id = Column(String(100), nullable=True)
    deposit_type = Column(String(20), nullable=True)
    account_number = Column(String(50), nullable=True)
    reference = Column(String(100), nullable=True)
    image_url = Column(String(500), nullable=True)
    created_by = Column(Uuid, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    updated_by = Column(Uuid, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)

from sqlalchemy import Column, Integer, String, Text, Date, ForeignKey, Numeric, Uuid
from sqlalchemy.orm import relationship
from datetime import date
from enum import Enum
import uuid

from app.database.database import Base
from app.common.mixins import CreatedAtMixin, TimestampMixin


class MovementType(str, Enum):
    DAMAGED = "damaged"
    NEW_STOCK = "new_stock"
    STOCK_CORRECTION = "stock_correction"


class OperationStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class StockAddition(Base, TimestampMixin):
    __tablename__ = "stock_additions"

    addition_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id = Column(Uuid, ForeignKey("products.product_id"), nullable=False, index=True)
    boxes_added = Column(Integer, nullable=False, default=0)
    kg_added = Column(Numeric(12, 3), nullable=False, default=0)
    total_cost = Column(Numeric(12, 2), nullable=False, default=0)
    delivery_date = Column(Date, nullable=False, default=date.today)
    status = Column(String(20), nullable=False, default=OperationStatus.COMPLETED.value)
    performed_by = Column(Uuid, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)

    product = relationship("Product", lazy="joined")

    @property
    def id(self):
        return self.addition_id


class StockCorrection(Base, TimestampMixin):
    __tablename__ = "stock_corrections"

    correction_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id = Column(Uuid, ForeignKey("products.product_id"), nullable=False, index=True)
    box_adjustment = Column(Integer, nullable=False, default=0)
    kg_adjustment = Column(Numeric(12, 3), nullable=False, default=0)
    correction_reason = Column(Text, nullable=False)
    correction_date = Column(Date, nullable=False, default=date.today)
    status = Column(String(20), nullable=False, default=OperationStatus.COMPLETED.value)
    performed_by = Column(Uuid, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)

    product = relationship("Product", lazy="joined")

    @property
    def id(self):
        return self.correction_id


class StockMovement(Base, CreatedAtMixin):
    """
    Bitácora de cambios de inventario. Las ventas no generan movimientos;
    su efecto queda registrado en la tabla sales.
    """
    __tablename__ = "stock_movements"

    movement_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id = Column(Uuid, ForeignKey("products.product_id"), nullable=False, index=True)
    movement_type = Column(String(30), nullable=False, index=True)
    box_change = Column(Integer, nullable=False, default=0)
    kg_change = Column(Numeric(12, 3), nullable=False, default=0)
    damaged_id = Column(Uuid, ForeignKey("damaged_products.damage_id", ondelete="SET NULL"), nullable=True)
    stock_addition_id = Column(Uuid, ForeignKey("stock_additions.addition_id", ondelete="SET NULL"), nullable=True)
    correction_id = Column(Uuid, ForeignKey("stock_corrections.correction_id", ondelete="SET NULL"), nullable=True)
    reason = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=OperationStatus.COMPLETED.value)
    performed_by = Column(Uuid, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)

    product = relationship("Product", lazy="joined")

    @property
    def id(self):
        return self.movement_id

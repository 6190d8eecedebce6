from sqlalchemy import Column, Integer, String, Text, Boolean, Date, DateTime, ForeignKey, Numeric, Uuid, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import date
import uuid

from app.database.database import Base
from app.common.mixins import TimestampMixin


class Product(Base, TimestampMixin):
    """
    Producto vendido por caja y/o por kg. quantity_kg es el peso suelto
    (cajas abiertas); el peso total disponible es quantity_kg + quantity_box * box_to_kg_ratio.
    """
    __tablename__ = "products"

    product_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    category_id = Column(Uuid, ForeignKey("product_categories.category_id"), nullable=False, index=True)
    quantity_box = Column(Integer, nullable=False, default=0)
    box_to_kg_ratio = Column(Numeric(10, 3), nullable=False, default=20)
    quantity_kg = Column(Numeric(12, 3), nullable=False, default=0)
    cost_per_box = Column(Numeric(12, 2), nullable=False, default=0)
    cost_per_kg = Column(Numeric(12, 2), nullable=False, default=0)
    price_per_box = Column(Numeric(12, 2), nullable=False, default=0)
    price_per_kg = Column(Numeric(12, 2), nullable=False, default=0)
    boxed_low_stock_threshold = Column(Integer, nullable=False, default=10)
    expiry_date = Column(Date, nullable=True)

    # Relationships
    category = relationship("ProductCategory", back_populates="products", lazy="joined")

    __table_args__ = (
        CheckConstraint("quantity_box >= 0", name="ck_products_quantity_box"),
        CheckConstraint("quantity_kg >= 0", name="ck_products_quantity_kg"),
    )

    @property
    def id(self):
        return self.product_id

    @property
    def profit_per_box(self):
        return (self.price_per_box or 0) - (self.cost_per_box or 0)

    @property
    def profit_per_kg(self):
        return (self.price_per_kg or 0) - (self.cost_per_kg or 0)

    @property
    def days_left(self):
        if self.expiry_date is None:
            return None
        return (self.expiry_date - date.today()).days

    @property
    def is_low_stock(self) -> bool:
        return (self.quantity_box or 0) <= (self.boxed_low_stock_threshold or 0)


class DamagedProduct(Base, TimestampMixin):
    __tablename__ = "damaged_products"

    damage_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id = Column(Uuid, ForeignKey("products.product_id"), nullable=False, index=True)
    damaged_boxes = Column(Integer, nullable=False, default=0)
    damaged_kg = Column(Numeric(12, 3), nullable=False, default=0)
    damaged_reason = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    damaged_date = Column(Date, nullable=False, default=date.today)
    loss_value = Column(Numeric(12, 2), nullable=False, default=0)
    damaged_approval = Column(Boolean, nullable=False, default=True)
    approved_by = Column(Uuid, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    approved_date = Column(DateTime(timezone=True), nullable=True)
    reported_by = Column(Uuid, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)

    product = relationship("Product", lazy="joined")

    @property
    def id(self):
        return self.damage_id

from sqlalchemy import Column, String, Text, Uuid
from sqlalchemy.orm import relationship
import uuid

from app.database.database import Base
from app.common.mixins import TimestampMixin

class ProductCategory(Base, TimestampMixin):
    __tablename__ = "product_categories"

    category_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)

    # Relationships
    products = relationship("Product", back_populates="category")

    @property
    def id(self):
        return self.category_id

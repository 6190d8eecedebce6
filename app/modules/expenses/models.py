from sqlalchemy import Column, String, Text, Date, ForeignKey, Numeric, Uuid
from sqlalchemy.orm import relationship
from datetime import date
from enum import Enum
import uuid

from app.database.database import Base
from app.common.mixins import TimestampMixin


class ExpenseStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class ExpenseCategory(Base, TimestampMixin):
    __tablename__ = "expense_categories"

    category_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    category_name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    budget = Column(Numeric(14, 2), nullable=False, default=0)
    created_by = Column(Uuid, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)

    expenses = relationship("Expense", back_populates="category")


class Expense(Base, TimestampMixin):
    __tablename__ = "expenses"

    expense_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    category_id = Column(Uuid, ForeignKey("expense_categories.category_id"), nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    date = Column(Date, nullable=False, default=date.today, index=True)
    added_by = Column(Uuid, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    status = Column(String(20), nullable=False, default=ExpenseStatus.PENDING.value, index=True)
    receipt_url = Column(String(500), nullable=True)

    category = relationship("ExpenseCategory", back_populates="expenses", lazy="joined")

    @property
    def category_name(self):
        return self.category.category_name if self.category else None

"""
Base service class for Reports module

Consultas filtradas por rango de fechas sobre las tablas de negocio.
`date_to` es inclusivo hasta el final del día.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.common.validators import as_decimal, start_of_day, end_of_day
from app.modules.deposits.models import Deposit, DepositApproval
from app.modules.expenses.models import Expense, ExpenseStatus
from app.modules.products.models import Product
from app.modules.sales.models import Sale, PaymentStatus

KG_PER_BOX = Decimal("20")
WALK_IN_CUSTOMER = "Walk-in Customer"


def validate_date_range(date_from: Optional[date], date_to: Optional[date]) -> None:
    if date_from and date_to and date_to < date_from:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="dateTo must be greater than or equal to dateFrom"
        )


def unified_quantity(boxes, kg) -> Decimal:
    """Cajas + kg expresados en cajas de KG_PER_BOX."""
    return as_decimal(boxes) + as_decimal(kg) / KG_PER_BOX


class BaseReportService:
    """Base service class for all report services"""

    def __init__(self, db: Session):
        self.db = db

    def _apply_datetime_range(self, query, column, date_from: Optional[date], date_to: Optional[date]):
        if date_from:
            query = query.filter(column >= start_of_day(date_from))
        if date_to:
            query = query.filter(column <= end_of_day(date_to))
        return query

    def _apply_date_range(self, query, column, date_from: Optional[date], date_to: Optional[date]):
        if date_from:
            query = query.filter(column >= date_from)
        if date_to:
            query = query.filter(column <= date_to)
        return query

    def _products(self, category_id=None):
        query = self.db.query(Product)
        if category_id:
            query = query.filter(Product.category_id == category_id)
        return query.order_by(Product.name.asc()).all()

    def _sales_query(self, date_from: Optional[date] = None, date_to: Optional[date] = None):
        return self._apply_datetime_range(self.db.query(Sale), Sale.date_time, date_from, date_to)

    def _paid_sales(self, date_from: Optional[date] = None, date_to: Optional[date] = None):
        return self._sales_query(date_from, date_to).filter(
            Sale.payment_status == PaymentStatus.PAID.value
        ).all()

    def _paid_expenses(self, date_from: Optional[date] = None, date_to: Optional[date] = None):
        query = self.db.query(Expense).filter(Expense.status == ExpenseStatus.PAID.value)
        return self._apply_date_range(query, Expense.date, date_from, date_to).all()

    def _approved_deposits(self, date_from: Optional[date] = None, date_to: Optional[date] = None):
        query = self.db.query(Deposit).filter(Deposit.approval == DepositApproval.APPROVED.value)
        return self._apply_datetime_range(query, Deposit.date_time, date_from, date_to).all()

"""
Reportes de ventas: listado de ventas, clientes y cuentas por cobrar.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional
from uuid import UUID

from fastapi import HTTPException, status

from app.common.validators import as_decimal
from app.modules.sales.models import Sale, PaymentStatus

from ..schemas import SalesReportItem, SalesReportSummary, CustomerReportItem
from .base import BaseReportService, WALK_IN_CUSTOMER, unified_quantity

OUTSTANDING_STATUSES = (PaymentStatus.PENDING.value, PaymentStatus.PARTIAL.value)


def build_sales_rows(sales: Iterable) -> List[SalesReportItem]:
    rows = []
    for sale in sales:
        product = getattr(sale, "product", None)
        rows.append(SalesReportItem(
            saleId=sale.id,
            saleDate=sale.date_time,
            customerName=sale.client_name or WALK_IN_CUSTOMER,
            productName=product.name if product is not None else None,
            quantity=unified_quantity(sale.boxes_quantity, sale.kg_quantity),
            unitPrice=as_decimal(sale.box_price if sale.boxes_quantity > 0 else sale.kg_price),
            totalAmount=as_decimal(sale.total_amount),
            amountPaid=as_decimal(sale.amount_paid),
            remainingAmount=as_decimal(sale.remaining_amount),
            paymentMethod=sale.payment_method,
            paymentStatus=sale.payment_status,
        ))
    return rows


def summarize_sales(rows: List[SalesReportItem]) -> SalesReportSummary:
    summary = SalesReportSummary(totalSales=len(rows))
    for row in rows:
        summary.totalRevenue += row.totalAmount
        summary.totalPaid += row.amountPaid
        summary.totalOutstanding += row.remainingAmount
    if rows:
        summary.averageSale = summary.totalRevenue / len(rows)
    return summary


def group_customers(paid_sales: Iterable) -> List[CustomerReportItem]:
    """
    Agrupa ventas pagadas por nombre de cliente sin distinguir mayúsculas.
    Las ventas sin cliente (walk-in) se excluyen.
    """
    customers = {}
    for sale in paid_sales:
        name = (sale.client_name or "").strip()
        if not name:
            continue
        key = name.lower()
        amount = as_decimal(sale.total_amount)
        entry = customers.get(key)
        if entry is None:
            customers[key] = {
                "name": name,
                "email": sale.email_address,
                "phone": sale.phone,
                "purchases": 1,
                "spent": amount,
                "first": sale.date_time,
                "last": sale.date_time,
            }
            continue

        entry["purchases"] += 1
        entry["spent"] += amount
        if sale.date_time is not None:
            if entry["first"] is None or sale.date_time < entry["first"]:
                entry["first"] = sale.date_time
            if entry["last"] is None or sale.date_time > entry["last"]:
                entry["last"] = sale.date_time
        if sale.email_address and not entry["email"]:
            entry["email"] = sale.email_address
        if sale.phone and not entry["phone"]:
            entry["phone"] = sale.phone

    items = [
        CustomerReportItem(
            customerName=c["name"],
            customerEmail=c["email"],
            customerPhone=c["phone"],
            totalPurchases=c["purchases"],
            totalSpent=c["spent"],
            averageOrderValue=c["spent"] / c["purchases"],
            firstPurchaseDate=c["first"],
            lastPurchaseDate=c["last"],
        )
        for c in customers.values()
    ]
    items.sort(key=lambda item: item.totalSpent, reverse=True)
    return items


def total_outstanding(rows: List[SalesReportItem]) -> Decimal:
    return sum((row.remainingAmount for row in rows), Decimal("0"))


class SalesReportService(BaseReportService):
    """Service for sales-related reports"""

    def get_sales_report(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        product_id: Optional[UUID] = None,
        payment_method: Optional[str] = None,
        payment_status: Optional[str] = None,
    ):
        """Ventas más recientes primero; 404 si no hay filas."""
        query = self._sales_query(date_from, date_to)
        if product_id:
            query = query.filter(Sale.product_id == product_id)
        if payment_method:
            query = query.filter(Sale.payment_method == payment_method)
        if payment_status:
            query = query.filter(Sale.payment_status == payment_status)

        sales = query.order_by(Sale.date_time.desc()).all()
        if not sales:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No sales data found")

        rows = build_sales_rows(sales)
        return rows, summarize_sales(rows)

    def get_customer_report(self, date_from: Optional[date] = None, date_to: Optional[date] = None) -> List[CustomerReportItem]:
        return group_customers(self._paid_sales(date_from, date_to))

    def get_debtor_report(self, date_from: Optional[date] = None, date_to: Optional[date] = None):
        sales = (
            self._sales_query(date_from, date_to)
            .filter(Sale.payment_status.in_(OUTSTANDING_STATUSES))
            .order_by(Sale.date_time.desc())
            .all()
        )
        rows = build_sales_rows(sales)
        return rows, total_outstanding(rows)

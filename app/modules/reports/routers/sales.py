"""
Sales Reports Router

Ventas, clientes y cuentas por cobrar en PDF.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.dependencies.dbDependecies import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.sales.models import PaymentMethod, PaymentStatus

from ..services.base import validate_date_range
from ..services.sales import SalesReportService
from ..utils import generate_report, pdf_response
from ..utils.renderers import render_sales_report, render_customer_report, render_debtor_report

router = APIRouter()


@router.get("/sales/pdf")
def sales_report_pdf(
    dateFrom: Optional[date] = Query(None),
    dateTo: Optional[date] = Query(None),
    productId: Optional[UUID] = Query(None),
    paymentMethod: Optional[PaymentMethod] = Query(None),
    paymentStatus: Optional[PaymentStatus] = Query(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    """Listado de ventas, más recientes primero. 404 si no hay ventas."""
    validate_date_range(dateFrom, dateTo)

    def _build():
        rows, summary = SalesReportService(db).get_sales_report(
            dateFrom, dateTo, productId,
            paymentMethod.value if paymentMethod else None,
            paymentStatus.value if paymentStatus else None,
        )
        return render_sales_report(rows, summary, (dateFrom, dateTo))

    return pdf_response(generate_report("sales", _build), "sales")


@router.get("/customers/pdf")
def customer_report_pdf(
    dateFrom: Optional[date] = Query(None),
    dateTo: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    validate_date_range(dateFrom, dateTo)

    def _build():
        rows = SalesReportService(db).get_customer_report(dateFrom, dateTo)
        return render_customer_report(rows, (dateFrom, dateTo))

    return pdf_response(generate_report("customer", _build), "customer")


@router.get("/debtor-credit/pdf")
def debtor_credit_report_pdf(
    dateFrom: Optional[date] = Query(None),
    dateTo: Optional[date] = Query(None),
    download: bool = Query(False),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    """Ventas pendientes o parciales con el saldo por cobrar."""
    validate_date_range(dateFrom, dateTo)

    def _build():
        rows, outstanding = SalesReportService(db).get_debtor_report(dateFrom, dateTo)
        return render_debtor_report(rows, outstanding, (dateFrom, dateTo))

    return pdf_response(generate_report("debtor/credit", _build), "debtor-credit", inline=not download)

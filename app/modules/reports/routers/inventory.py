"""
Inventory Reports Router

Stock actual, productos, más vendidos y reporte general en PDF.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.dependencies.dbDependecies import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext

from ..services.base import validate_date_range
from ..services.inventory import InventoryReportService
from ..utils import generate_report, pdf_response
from ..utils.renderers import (
    render_stock_report, render_product_report, render_top_selling_report, render_general_report,
)

router = APIRouter()


@router.get("/stock/pdf")
def stock_report_pdf(
    categoryId: Optional[UUID] = Query(None),
    lowStockOnly: bool = Query(False),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    """
    Stock actual por producto (kg totales = cajas * 20 + kg sueltos).

    - **lowStockOnly**: solo productos con stock bajo o agotado
    """
    def _build():
        rows, summary = InventoryReportService(db).get_stock_report(categoryId, lowStockOnly)
        return render_stock_report(rows, summary)

    return pdf_response(generate_report("stock", _build), "stock")


@router.get("/products/pdf")
def product_report_pdf(
    categoryId: Optional[UUID] = Query(None),
    dateFrom: Optional[date] = Query(None),
    dateTo: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    validate_date_range(dateFrom, dateTo)

    def _build():
        rows = InventoryReportService(db).get_product_report(categoryId, dateFrom, dateTo)
        return render_product_report(rows, (dateFrom, dateTo))

    return pdf_response(generate_report("product", _build), "product")


@router.get("/top-selling/pdf")
def top_selling_report_pdf(
    dateFrom: Optional[date] = Query(None),
    dateTo: Optional[date] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    categoryId: Optional[UUID] = Query(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    validate_date_range(dateFrom, dateTo)

    def _build():
        rows = InventoryReportService(db).get_top_selling_report(dateFrom, dateTo, limit, categoryId)
        return render_top_selling_report(rows, (dateFrom, dateTo))

    return pdf_response(generate_report("top selling", _build), "top-selling")


@router.get("/general/pdf")
def general_report_pdf(
    dateFrom: Optional[date] = Query(None),
    dateTo: Optional[date] = Query(None),
    categoryId: Optional[UUID] = Query(None),
    download: bool = Query(False),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    """
    Reporte general: stock inicial, entradas, dañados, ventas, cierre y
    ganancia por producto. Se muestra inline salvo `download=true`.
    """
    validate_date_range(dateFrom, dateTo)

    def _build():
        rows = InventoryReportService(db).get_general_report(dateFrom, dateTo, categoryId)
        return render_general_report(rows, (dateFrom, dateTo))

    return pdf_response(generate_report("general", _build), "general", inline=not download)

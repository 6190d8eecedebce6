"""
Financial Reports Router

Resumen financiero, transacciones combinadas y pérdidas y ganancias.
Estos reportes requieren dateFrom y dateTo.
"""

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.dependencies.dbDependecies import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext

from ..services.base import validate_date_range
from ..services.financial import FinancialReportService
from ..utils import generate_report, pdf_response
from ..utils.renderers import render_financial_report, render_transaction_report, render_profit_loss_report

router = APIRouter()


@router.get("/financial/pdf")
def financial_report_pdf(
    dateFrom: date = Query(..., description="Fecha inicial (YYYY-MM-DD)"),
    dateTo: date = Query(..., description="Fecha final inclusiva (YYYY-MM-DD)"),
    download: bool = Query(False),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    validate_date_range(dateFrom, dateTo)

    def _build():
        data = FinancialReportService(db).get_financial_report(dateFrom, dateTo)
        return render_financial_report(data, (dateFrom, dateTo))

    return pdf_response(generate_report("financial", _build), "financial", inline=not download)


@router.get("/transactions/pdf")
def transaction_report_pdf(
    dateFrom: date = Query(...),
    dateTo: date = Query(...),
    type: Optional[Literal["sale", "expense", "deposit"]] = Query(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    validate_date_range(dateFrom, dateTo)

    def _build():
        rows = FinancialReportService(db).get_transaction_report(dateFrom, dateTo, type)
        return render_transaction_report(rows, (dateFrom, dateTo))

    return pdf_response(generate_report("transaction", _build), "transaction")


@router.get("/profit-loss/pdf")
def profit_loss_report_pdf(
    dateFrom: date = Query(...),
    dateTo: date = Query(...),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    validate_date_range(dateFrom, dateTo)

    def _build():
        data = FinancialReportService(db).get_profit_loss_report(dateFrom, dateTo)
        return render_profit_loss_report(data, (dateFrom, dateTo))

    return pdf_response(generate_report("profit and loss", _build), "profit-loss")

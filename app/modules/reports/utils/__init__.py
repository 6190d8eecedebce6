"""
Utilities for Reports module

Formateo de valores para las tablas PDF y construcción de la respuesta
binaria con los headers de descarga.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from fastapi import HTTPException, Response, status

logger = logging.getLogger(__name__)


def format_money(value: Any) -> str:
    if value is None:
        return "$0.00"
    return f"${Decimal(str(value)):,.2f}"


def format_number(value: Any, decimals: int = 2) -> str:
    if value is None:
        return "0"
    number = Decimal(str(value))
    if number == number.to_integral_value():
        return f"{int(number):,}"
    return f"{number:,.{decimals}f}"


def format_percentage(value: Any) -> str:
    return f"{Decimal(str(value or 0)):.1f}%"


def format_date(value: Any) -> str:
    if value is None:
        return "N/A"
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def truncate(text: Optional[str], length: int) -> str:
    if not text:
        return ""
    return text if len(text) <= length else text[: length - 3] + "..."


def report_filename(report_type: str, today: Optional[date] = None) -> str:
    return f"{report_type}-report-{(today or date.today()).isoformat()}.pdf"


def pdf_response(content: bytes, report_type: str, inline: bool = False) -> Response:
    """Respuesta application/pdf; `inline` para visualizar en el navegador."""
    disposition = "inline" if inline else "attachment"
    return Response(
        content=content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'{disposition}; filename="{report_filename(report_type)}"',
            "Cache-Control": "no-cache",
        },
    )


def generate_report(report_name: str, generator, *args, **kwargs) -> bytes:
    """
    Ejecuta la consulta + renderizado de un reporte. HTTPException se propaga;
    cualquier otro error se registra y se convierte en 500.
    """
    try:
        return generator(*args, **kwargs)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error generating {report_name} report: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to generate {report_name} report"
        )

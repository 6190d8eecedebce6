"""
Routers package for Reports module

Todos los endpoints de reportes PDF bajo un único router.
"""

from fastapi import APIRouter

from .inventory import router as inventory_router
from .sales import router as sales_router
from .financial import router as financial_router

reports_router = APIRouter()
reports_router.include_router(inventory_router)
reports_router.include_router(sales_router)
reports_router.include_router(financial_router)

__all__ = ["reports_router"]

from fastapi import APIRouter, Depends, Query

from app.dependencies.dbDependecies import db_dependency
from app.common.responses import success_response
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.dashboard.service import DashboardService

dashboard_router = APIRouter()


@dashboard_router.get("/stats")
def get_dashboard_stats(
    db: db_dependency,
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    """Resumen del mes calendario actual."""
    stats = DashboardService(db).get_stats()
    return success_response(stats, "Dashboard statistics retrieved successfully")


@dashboard_router.get("/revenue-chart")
def get_revenue_chart(
    db: db_dependency,
    period: str = Query("month", description="week | month | 6months"),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    points = DashboardService(db).get_revenue_chart(period)
    return success_response(points, "Revenue chart data retrieved successfully")


@dashboard_router.get("/financial-overview")
def get_financial_overview(
    db: db_dependency,
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    overview = DashboardService(db).get_financial_overview()
    return success_response(overview, "Financial overview data retrieved successfully")

"""
Métricas del dashboard: resumen del mes, gráfico de ingresos e
inversión por periodo y distribución financiera del mes actual.
"""
from sqlalchemy import func
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Tuple
import calendar
import logging

from app.common.validators import as_decimal, round_money, start_of_day, end_of_day
from app.modules.dashboard.schemas import DashboardStats, RevenueChartPoint, FinancialOverviewItem
from app.modules.expenses.models import Expense
from app.modules.products.models import Product, DamagedProduct
from app.modules.sales.models import Sale

logger = logging.getLogger(__name__)

CHART_PERIODS = ("week", "month", "6months")
DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

OVERVIEW_STYLE = {
    "Revenue": ("#22c55e", "💰"),
    "Profit": ("#3b82f6", "📈"),
    "Expense": ("#f59e0b", "💸"),
    "Damaged": ("#ef4444", "⚠️"),
}


@dataclass
class ChartPeriod:
    label: str
    start: date
    end: date
    is_current: bool


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def previous_month(year: int, month: int) -> Tuple[int, int]:
    return (year - 1, 12) if month == 1 else (year, month - 1)


def cost_of_goods(sales) -> Decimal:
    """Costo de lo vendido según cost_per_box / cost_per_kg del producto."""
    total = Decimal("0")
    for sale in sales:
        product = sale.product
        if product is None:
            continue
        total += sale.boxes_quantity * as_decimal(product.cost_per_box)
        total += as_decimal(sale.kg_quantity) * as_decimal(product.cost_per_kg)
    return total


def percent(part, whole) -> float:
    whole = as_decimal(whole)
    if whole == 0:
        return 0.0
    return round_money(as_decimal(part) / whole * 100)


def build_chart_periods(period: str, today: date) -> List[ChartPeriod]:
    """
    week: últimos 7 días por nombre de día; month: últimas 4 semanas
    ("Week 1".."Week 4"); 6months: últimos 6 meses por abreviatura.
    """
    if period == "week":
        periods = []
        for offset in range(6, -1, -1):
            day = today - timedelta(days=offset)
            periods.append(ChartPeriod(DAY_NAMES[day.weekday()], day, day, offset == 0))
        return periods

    if period == "month":
        periods = []
        for i in range(3, -1, -1):
            end = today - timedelta(days=i * 7)
            periods.append(ChartPeriod(f"Week {4 - i}", end - timedelta(days=6), end, i == 0))
        return periods

    if period == "6months":
        periods = []
        year, month = today.year, today.month
        months = []
        for _ in range(6):
            months.append((year, month))
            year, month = previous_month(year, month)
        for year, month in reversed(months):
            start, end = month_bounds(year, month)
            periods.append(ChartPeriod(
                calendar.month_abbr[month], start, end,
                year == today.year and month == today.month,
            ))
        return periods

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=f"Invalid period. Must be one of: {', '.join(CHART_PERIODS)}"
    )


class DashboardService:

    def __init__(self, db: Session):
        self.db = db

    def _sales_between(self, start: date, end: date) -> List[Sale]:
        return self.db.query(Sale).filter(
            Sale.date_time >= start_of_day(start),
            Sale.date_time <= end_of_day(end),
        ).all()

    def _expenses_between(self, start: date, end: date) -> Decimal:
        total = self.db.query(func.coalesce(func.sum(Expense.amount), 0)).filter(
            Expense.date >= start,
            Expense.date <= end,
        ).scalar()
        return as_decimal(total)

    @staticmethod
    def _revenue(sales) -> Decimal:
        return sum((as_decimal(s.total_amount) for s in sales), Decimal("0"))

    def get_stats(self, today: date = None) -> DashboardStats:
        today = today or date.today()
        start, end = month_bounds(today.year, today.month)
        last_start, last_end = month_bounds(*previous_month(today.year, today.month))

        current_sales = self._sales_between(start, end)
        revenue = self._revenue(current_sales)
        last_revenue = self._revenue(self._sales_between(last_start, last_end))
        profit = revenue - cost_of_goods(current_sales)
        expenses = self._expenses_between(start, end)

        products = self.db.query(Product).all()
        low_stock = sum(1 for p in products if p.is_low_stock)
        damaged = self.db.query(func.coalesce(func.sum(DamagedProduct.damaged_boxes), 0)).filter(
            DamagedProduct.damaged_approval.is_(True)
        ).scalar()

        growth = percent(revenue - last_revenue, last_revenue) if last_revenue > 0 else 0.0

        return DashboardStats(
            totalRevenue=round_money(revenue),
            totalProfit=round_money(profit),
            totalExpenses=round_money(expenses),
            productsInStock=len(products),
            lowStockItems=low_stock,
            damagedItems=int(damaged or 0),
            revenueGrowth=growth,
            profitMargin=percent(profit, revenue),
        )

    def get_revenue_chart(self, period: str, today: date = None) -> List[RevenueChartPoint]:
        periods = build_chart_periods(period, today or date.today())
        points = []
        for p in periods:
            sales = self._sales_between(p.start, p.end)
            invest = cost_of_goods(sales) + self._expenses_between(p.start, p.end)
            points.append(RevenueChartPoint(
                month=p.label,
                profit=round_money(self._revenue(sales) - invest),
                invest=round_money(invest),
                isCurrentMonth=p.is_current,
            ))
        return points

    def get_financial_overview(self, today: date = None) -> List[FinancialOverviewItem]:
        """Revenue, Profit, Expense y Damaged del mes con su porcentaje sobre la suma."""
        today = today or date.today()
        start, end = month_bounds(today.year, today.month)

        sales = self._sales_between(start, end)
        revenue = self._revenue(sales)
        amounts = {
            "Revenue": revenue,
            "Profit": revenue - cost_of_goods(sales),
            "Expense": self._expenses_between(start, end),
            "Damaged": as_decimal(
                self.db.query(func.coalesce(func.sum(DamagedProduct.loss_value), 0)).filter(
                    DamagedProduct.damaged_approval.is_(True),
                    DamagedProduct.damaged_date >= start,
                    DamagedProduct.damaged_date <= end,
                ).scalar()
            ),
        }
        total = sum(amounts.values(), Decimal("0"))

        items = []
        for name, amount in amounts.items():
            color, icon = OVERVIEW_STYLE[name]
            items.append(FinancialOverviewItem(
                name=name,
                value=round(percent(amount, total)) if total > 0 else 0,
                amount=round_money(amount),
                color=color,
                icon=icon,
            ))
        return items

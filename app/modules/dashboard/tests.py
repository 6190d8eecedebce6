"""
Tests para las métricas del dashboard
"""

from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from app.modules.dashboard.service import (
    DashboardService, build_chart_periods, cost_of_goods, month_bounds, percent, previous_month
)
from app.modules.expenses.models import Expense, ExpenseCategory
from app.modules.products.models import DamagedProduct
from app.modules.sales.models import Sale

TODAY = date(2024, 5, 15)


# ===== FIXTURES =====

@pytest.fixture
def activity(db_session, sample_product):
    """Una venta en mayo, otra en abril, un gasto y un daño en mayo"""
    category = ExpenseCategory(category_name="Ice")
    db_session.add(category)
    db_session.flush()
    db_session.add_all([
        Sale(product_id=sample_product.product_id, boxes_quantity=2, total_amount=200,
             payment_status="paid", date_time=datetime(2024, 5, 10, 12, 0)),
        Sale(product_id=sample_product.product_id, boxes_quantity=1, total_amount=100,
             payment_status="paid", date_time=datetime(2024, 4, 20, 9, 30)),
        Expense(title="Ice blocks", category_id=category.category_id, amount=30, date=date(2024, 5, 10)),
        DamagedProduct(product_id=sample_product.product_id, damaged_boxes=1, damaged_reason="Spoiled",
                       loss_value=30, damaged_date=date(2024, 5, 3)),
    ])
    db_session.commit()


# ===== HELPERS =====

class TestHelpers:

    def test_month_bounds(self):
        assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
        assert previous_month(2024, 1) == (2023, 12)

    def test_percent(self):
        assert percent(1, 3) == 33.33
        assert percent(5, 0) == 0.0

    def test_cost_of_goods(self):
        product = SimpleNamespace(cost_per_box=Decimal("80"), cost_per_kg=Decimal("4"))
        sales = [
            SimpleNamespace(product=product, boxes_quantity=2, kg_quantity=Decimal("1.5")),
            SimpleNamespace(product=None, boxes_quantity=5, kg_quantity=0),
        ]
        assert cost_of_goods(sales) == Decimal("166")

    def test_week_periods(self):
        periods = build_chart_periods("week", TODAY)
        assert len(periods) == 7
        assert periods[0].label == "Thu"
        assert periods[-1].label == "Wed"
        assert periods[-1].is_current is True

    def test_month_periods(self):
        periods = build_chart_periods("month", TODAY)
        assert [p.label for p in periods] == ["Week 1", "Week 2", "Week 3", "Week 4"]
        assert periods[0].start == date(2024, 4, 18)
        assert periods[-1].end == TODAY

    def test_six_month_periods(self):
        periods = build_chart_periods("6months", TODAY)
        assert [p.label for p in periods] == ["Dec", "Jan", "Feb", "Mar", "Apr", "May"]
        assert [p.is_current for p in periods].count(True) == 1

    def test_invalid_period(self):
        with pytest.raises(HTTPException) as exc:
            build_chart_periods("year", TODAY)
        assert exc.value.status_code == 400


# ===== SERVICIO =====

class TestDashboardService:

    def test_monthly_stats(self, db_session, activity):
        stats = DashboardService(db_session).get_stats(TODAY)
        assert stats.totalRevenue == 200
        # 200 - 2 cajas * 80
        assert stats.totalProfit == 40
        assert stats.totalExpenses == 30
        assert stats.productsInStock == 1
        assert stats.lowStockItems == 0
        assert stats.damagedItems == 1
        assert stats.revenueGrowth == 100.0
        assert stats.profitMargin == 20.0

    def test_revenue_chart(self, db_session, activity):
        points = DashboardService(db_session).get_revenue_chart("6months", TODAY)
        april, may = points[-2], points[-1]
        assert (april.profit, april.invest) == (20, 80)
        assert (may.profit, may.invest) == (10, 190)
        assert may.isCurrentMonth is True

    def test_financial_overview(self, db_session, activity):
        items = DashboardService(db_session).get_financial_overview(TODAY)
        assert [i.name for i in items] == ["Revenue", "Profit", "Expense", "Damaged"]
        assert [i.value for i in items] == [67, 13, 10, 10]
        assert items[3].amount == 30

    def test_overview_without_activity(self, db_session):
        items = DashboardService(db_session).get_financial_overview(TODAY)
        assert all(i.value == 0 for i in items)


# ===== ENDPOINTS =====

class TestDashboardEndpoints:

    def test_stats_endpoint(self, client, employee_headers):
        response = client.get("/api/dashboard/stats", headers=employee_headers)
        assert response.status_code == 200
        assert response.json()["data"]["totalRevenue"] == 0

    def test_chart_endpoint(self, client, employee_headers):
        body = client.get("/api/dashboard/revenue-chart?period=week", headers=employee_headers).json()
        assert len(body["data"]) == 7

    def test_chart_invalid_period(self, client, employee_headers):
        response = client.get("/api/dashboard/revenue-chart?period=decade", headers=employee_headers)
        assert response.status_code == 400

    def test_requires_auth(self, client):
        assert client.get("/api/dashboard/financial-overview").status_code == 401

"""
Tests para el módulo de reportes PDF

- Agregaciones puras (stock, clientes, transacciones, pérdidas y ganancias)
- Formateo y respuesta binaria
- Endpoints: validación de fechas, 404 de ventas vacías, inline vs descarga
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.modules.sales.models import Sale

from app.modules.reports.services.base import unified_quantity
from app.modules.reports.services.financial import merge_transactions, summarize_profit_loss, summarize_financial
from app.modules.reports.services.inventory import build_general_row, build_stock_rows, build_top_selling, stock_status, summarize_stock
from app.modules.reports.services.sales import group_customers
from app.modules.reports.utils import format_money, format_number, pdf_response, report_filename
from app.modules.reports.utils.pdf import PdfReportBuilder


# ===== FIXTURES =====

def make_product(name="Tilapia", boxes=2, kg="5", threshold=3, **overrides):
    values = dict(
        product_id=uuid.uuid4(),
        name=name,
        category=SimpleNamespace(name="Fresh"),
        quantity_box=boxes,
        quantity_kg=Decimal(kg),
        boxed_low_stock_threshold=threshold,
        cost_per_box=Decimal("80"),
        cost_per_kg=Decimal("4"),
        price_per_box=Decimal("100"),
        price_per_kg=Decimal("6"),
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def make_sale(product_id, boxes=0, kg="0", total="0", **overrides):
    values = dict(
        id=uuid.uuid4(),
        product_id=product_id,
        boxes_quantity=boxes,
        kg_quantity=Decimal(kg),
        total_amount=Decimal(total),
        remaining_amount=Decimal("0"),
        payment_status="paid",
        payment_method="cash",
        client_name=None,
        email_address=None,
        phone=None,
        date_time=datetime(2024, 5, 1, 10, 0),
    )
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def paid_sale(db_session, sample_product):
    sale = Sale(
        product_id=sample_product.product_id, boxes_quantity=1, box_price=100, total_amount=100,
        amount_paid=100, payment_status="paid", payment_method="cash", client_name="Jean",
        date_time=datetime(2024, 5, 2, 11, 0),
    )
    db_session.add(sale)
    db_session.commit()
    return sale


# ===== INVENTARIO =====

class TestInventoryAggregations:

    def test_stock_status(self):
        assert stock_status(0, Decimal("0"), 3) == "out_of_stock"
        assert stock_status(2, Decimal("45"), 3) == "low_stock"
        assert stock_status(5, Decimal("100"), 3) == "in_stock"

    def test_stock_rows(self):
        row = build_stock_rows([make_product()])[0]
        assert row.currentStock == Decimal("45")
        assert row.minStockLevel == Decimal("60")
        assert row.maxStockLevel == Decimal("120")
        assert row.stockValue == Decimal("180")
        assert row.status == "low_stock"
        assert row.category == "Fresh"

    def test_low_stock_only_keeps_low_and_out(self):
        products = [
            make_product("Low"),
            make_product("Empty", boxes=0, kg="0"),
            make_product("Plenty", boxes=10),
        ]
        rows = build_stock_rows(products, low_stock_only=True)
        assert [r.productName for r in rows] == ["Low", "Empty"]

        summary = summarize_stock(build_stock_rows(products))
        assert (summary.inStockItems, summary.lowStockItems, summary.outOfStockItems) == (1, 1, 1)

    def test_top_selling_order(self):
        perch, tilapia = make_product("Perch"), make_product("Tilapia")
        sales = [
            make_sale(perch.product_id, boxes=1, total="100"),
            make_sale(tilapia.product_id, boxes=2, kg="10", total="260"),
        ]
        items = build_top_selling([perch, tilapia], sales, limit=5)
        assert [i.name for i in items] == ["Tilapia", "Perch"]
        assert items[0].totalSold == Decimal("2.5")
        # 2 * 20 + 10 * 2
        assert items[0].totalProfit == Decimal("60")

    def test_general_row(self):
        product = make_product(boxes=10, kg="5")
        additions = [SimpleNamespace(boxes_added=4, kg_added=Decimal("2"))]
        damaged = [SimpleNamespace(box_change=-1, kg_change=Decimal("-0.5"))]
        sales = [
            make_sale(product.product_id, boxes=3, kg="1", total="306"),
            make_sale(product.product_id, boxes=1, total="100", payment_status="partial",
                      remaining_amount=Decimal("40")),
        ]
        row = build_general_row(product, additions, damaged, sales)
        assert row.closingStock.boxes == 10 + 4 - 4 - 1
        assert row.closingStock.kg == Decimal("5.5")
        assert row.unpaid.amount == Decimal("40")
        assert row.totalProfit == Decimal("82")

    def test_unified_quantity(self):
        assert unified_quantity(2, Decimal("10")) == Decimal("2.5")


# ===== VENTAS Y FINANZAS =====

class TestSalesAndFinancialAggregations:

    def test_group_customers_case_insensitive(self):
        pid = uuid.uuid4()
        sales = [
            make_sale(pid, total="100", client_name="Jean", date_time=datetime(2024, 5, 1)),
            make_sale(pid, total="50", client_name="jean ", phone="0788", date_time=datetime(2024, 5, 3)),
            make_sale(pid, total="70", client_name=None),
        ]
        customers = group_customers(sales)
        assert len(customers) == 1
        assert customers[0].totalPurchases == 2
        assert customers[0].totalSpent == Decimal("150")
        assert customers[0].customerPhone == "0788"
        assert customers[0].lastPurchaseDate == datetime(2024, 5, 3)

    def test_merge_transactions_newest_first(self):
        sale = make_sale(uuid.uuid4(), total="100", date_time=datetime(2024, 5, 2, 8, 0))
        expense = SimpleNamespace(expense_id=uuid.uuid4(), date=date(2024, 5, 3), title="Ice",
                                  amount=Decimal("10"), category=None)
        deposit = SimpleNamespace(deposit_id=uuid.uuid4(), date_time=datetime(2024, 5, 1, 9, 0),
                                  account_name="MTN", amount=Decimal("90"), deposit_type="momo")

        items = merge_transactions([sale], [expense], [deposit])
        assert [i.type for i in items] == ["expense", "sale", "deposit"]
        assert items[1].description == "Sale to Walk-in Customer"
        assert items[0].category == "Business Expense"

        only_deposits = merge_transactions([sale], [expense], [deposit], "deposit")
        assert [i.type for i in only_deposits] == ["deposit"]

    def test_financial_summary(self):
        pid = uuid.uuid4()
        sales = [make_sale(pid, boxes=1, total="100"), make_sale(pid, boxes=1, total="50", payment_method="momo_pay")]
        expenses = [SimpleNamespace(amount=Decimal("30"))]
        data = summarize_financial(sales, expenses, [])
        assert data.netProfit == Decimal("120")
        assert data.averageSaleAmount == Decimal("75")
        assert data.topSellingProducts[0].productName == f"Product-{pid}"
        assert [m.paymentMethod for m in data.salesByPaymentMethod] == ["cash", "momo_pay"]

    def test_profit_loss(self):
        sales = [make_sale(uuid.uuid4(), total="200")]
        deposit_transactions = [SimpleNamespace(total_amount=Decimal("20"))]
        deposits = [SimpleNamespace(amount=Decimal("30"))]
        expenses = [
            SimpleNamespace(amount=Decimal("40"), category=SimpleNamespace(category_name="Fuel")),
            SimpleNamespace(amount=Decimal("10"), category=None),
        ]
        data = summarize_profit_loss(sales, deposit_transactions, deposits, expenses)
        assert data.totalIncome == Decimal("250")
        assert data.netProfit == Decimal("200")
        assert data.depositCount == 2
        assert data.expensesByCategory == {"Fuel": Decimal("40"), "Uncategorized": Decimal("10")}


# ===== PDF =====

class TestPdfUtilities:

    def test_formatting(self):
        assert format_money(1234.5) == "$1,234.50"
        assert format_money(None) == "$0.00"
        assert format_number(Decimal("2.000")) == "2"
        assert format_number("2.5") == "2.50"
        assert report_filename("sales", date(2024, 5, 1)) == "sales-report-2024-05-01.pdf"

    def test_pdf_response_headers(self):
        response = pdf_response(b"%PDF-1.4", "stock", inline=True)
        assert response.media_type == "application/pdf"
        assert response.headers["content-disposition"].startswith('inline; filename="stock-report-')
        assert response.headers["cache-control"] == "no-cache"

    def test_builder_renders_pdf(self):
        pdf = PdfReportBuilder("Stock Report", (date(2024, 5, 1), date(2024, 5, 31)))
        pdf.add_summary("Summary", [("Total Products", "1")])
        pdf.add_table(["Product", "Boxes"], [["Tilapia", "2"]], title="Details")
        pdf.add_table(["Product"], [], title="Empty")
        assert pdf.build().startswith(b"%PDF")


# ===== ENDPOINTS =====

class TestReportEndpoints:

    def test_requires_auth(self, client):
        assert client.get("/api/reports/stock/pdf").status_code == 401

    def test_stock_report(self, client, sample_product, employee_headers):
        response = client.get("/api/reports/stock/pdf", headers=employee_headers)
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"].startswith("attachment;")
        assert response.content.startswith(b"%PDF")

    def test_sales_report_empty(self, client, employee_headers):
        response = client.get("/api/reports/sales/pdf", headers=employee_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "No sales data found"

    def test_sales_report(self, client, paid_sale, employee_headers):
        response = client.get("/api/reports/sales/pdf?paymentStatus=paid", headers=employee_headers)
        assert response.status_code == 200
        assert response.content.startswith(b"%PDF")

    def test_invalid_date_range(self, client, employee_headers):
        response = client.get(
            "/api/reports/customers/pdf?dateFrom=2024-05-10&dateTo=2024-05-01", headers=employee_headers
        )
        assert response.status_code == 400
        assert response.json()["error"] == "dateTo must be greater than or equal to dateFrom"

    def test_financial_requires_dates(self, client, employee_headers):
        response = client.get("/api/reports/financial/pdf?dateTo=2024-05-31", headers=employee_headers)
        assert response.status_code == 400

    def test_financial_inline_unless_download(self, client, paid_sale, employee_headers):
        url = "/api/reports/financial/pdf?dateFrom=2024-05-01&dateTo=2024-05-31"
        inline = client.get(url, headers=employee_headers)
        assert inline.status_code == 200
        assert inline.headers["content-disposition"].startswith("inline;")

        attached = client.get(url + "&download=true", headers=employee_headers)
        assert attached.headers["content-disposition"].startswith("attachment;")

    def test_transactions_invalid_type(self, client, employee_headers):
        response = client.get(
            "/api/reports/transactions/pdf?dateFrom=2024-05-01&dateTo=2024-05-31&type=refund",
            headers=employee_headers,
        )
        assert response.status_code == 400

    def test_profit_loss_and_general(self, client, paid_sale, employee_headers):
        response = client.get(
            "/api/reports/profit-loss/pdf?dateFrom=2024-05-01&dateTo=2024-05-31", headers=employee_headers
        )
        assert response.status_code == 200
        general = client.get("/api/reports/general/pdf", headers=employee_headers)
        assert general.headers["content-disposition"].startswith("inline;")
        assert general.content.startswith(b"%PDF")

    def test_debtors_and_top_selling(self, client, paid_sale, employee_headers):
        assert client.get("/api/reports/debtor-credit/pdf", headers=employee_headers).status_code == 200
        assert client.get("/api/reports/top-selling/pdf?limit=5", headers=employee_headers).status_code == 200
        assert client.get("/api/reports/products/pdf", headers=employee_headers).status_code == 200

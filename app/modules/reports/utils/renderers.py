"""
Renderizado de cada reporte a partir de sus estructuras agregadas.
"""

from typing import List

from ..schemas import (
    StockReportItem, StockReportSummary, SalesReportItem, SalesReportSummary,
    FinancialReportData, TransactionReportItem, ProductReportItem,
    CustomerReportItem, TopSellingItem, GeneralReportItem, ProfitLossData,
)
from . import format_money, format_number, format_percentage, format_date, truncate
from .pdf import PdfReportBuilder, Period

STATUS_LABELS = {
    "in_stock": "In Stock",
    "low_stock": "Low Stock",
    "out_of_stock": "Out of Stock",
}


def _box_kg(boxes, kg) -> str:
    return f"{boxes}B / {format_number(kg)}kg"


def render_stock_report(rows: List[StockReportItem], summary: StockReportSummary, period: Period = None) -> bytes:
    pdf = PdfReportBuilder("Stock Report", period)
    pdf.add_summary("Stock Summary", [
        ("Total Products", str(summary.totalProducts)),
        ("In Stock Items", str(summary.inStockItems)),
        ("Low Stock Items", str(summary.lowStockItems)),
        ("Out of Stock Items", str(summary.outOfStockItems)),
        ("Total Stock Value", format_money(summary.totalStockValue)),
    ])
    pdf.add_table(
        ["Product", "Category", "Boxes/Kg", "Stock (kg)", "Min", "Max", "Value", "Status"],
        [
            [
                truncate(r.productName, 22),
                truncate(r.category or "N/A", 15),
                _box_kg(r.boxes, r.kg),
                format_number(r.currentStock),
                format_number(r.minStockLevel),
                format_number(r.maxStockLevel),
                format_money(r.stockValue),
                STATUS_LABELS.get(r.status, r.status),
            ]
            for r in rows
        ],
        title="Stock Details",
    )
    return pdf.build()


def render_sales_report(rows: List[SalesReportItem], summary: SalesReportSummary, period: Period = None) -> bytes:
    pdf = PdfReportBuilder("Sales Report", period, wide=True)
    pdf.add_summary("Sales Summary", [
        ("Total Sales", str(summary.totalSales)),
        ("Total Revenue", format_money(summary.totalRevenue)),
        ("Total Paid", format_money(summary.totalPaid)),
        ("Total Outstanding", format_money(summary.totalOutstanding)),
        ("Average Sale", format_money(summary.averageSale)),
    ])
    pdf.add_table(
        ["Sale ID", "Date", "Customer", "Product", "Qty (boxes)", "Amount", "Paid", "Payment", "Status"],
        [
            [
                str(r.saleId)[:8],
                format_date(r.saleDate),
                truncate(r.customerName, 20),
                truncate(r.productName or "N/A", 18),
                format_number(r.quantity),
                format_money(r.totalAmount),
                format_money(r.amountPaid),
                r.paymentMethod or "N/A",
                r.paymentStatus,
            ]
            for r in rows
        ],
        title="Sales Details",
    )
    return pdf.build()


def _add_financial_tables(pdf: PdfReportBuilder, data: FinancialReportData):
    pdf.add_table(
        ["Product Name", "Quantity Sold", "Revenue"],
        [
            [truncate(p.productName, 30), format_number(p.quantitySold), format_money(p.totalRevenue)]
            for p in data.topSellingProducts
        ],
        title="Top Selling Products",
    )
    pdf.add_table(
        ["Payment Method", "Transaction Count", "Total Amount"],
        [
            [m.paymentMethod, str(m.transactionCount), format_money(m.totalAmount)]
            for m in data.salesByPaymentMethod
        ],
        title="Sales by Payment Method",
    )


def render_financial_report(data: FinancialReportData, period: Period = None) -> bytes:
    pdf = PdfReportBuilder("Financial Report", period)
    pdf.add_summary("Financial Overview", [
        ("Total Sales", format_money(data.totalSales)),
        ("Total Expenses", format_money(data.totalExpenses)),
        ("Total Deposits", format_money(data.totalDeposits)),
        ("Net Profit", format_money(data.netProfit)),
        ("Sales Count", str(data.salesCount)),
        ("Average Sale Amount", format_money(data.averageSaleAmount)),
    ])
    _add_financial_tables(pdf, data)
    return pdf.build()


def render_transaction_report(rows: List[TransactionReportItem], period: Period = None) -> bytes:
    counts = {"sale": 0, "expense": 0, "deposit": 0}
    for r in rows:
        counts[r.type] = counts.get(r.type, 0) + 1

    pdf = PdfReportBuilder("Transaction Report", period)
    pdf.add_summary("Transaction Summary", [
        ("Total Transactions", str(len(rows))),
        ("Sales Transactions", str(counts["sale"])),
        ("Expense Transactions", str(counts["expense"])),
        ("Deposit Transactions", str(counts["deposit"])),
        ("Total Amount", format_money(sum(r.amount for r in rows))),
    ])
    pdf.add_table(
        ["Date", "Type", "Description", "Amount", "Payment Method", "Category"],
        [
            [
                format_date(r.date),
                r.type.upper(),
                truncate(r.description, 30),
                format_money(r.amount),
                r.paymentMethod or "N/A",
                truncate(r.category, 18),
            ]
            for r in rows
        ],
        title="Transactions",
    )
    return pdf.build()


def render_product_report(rows: List[ProductReportItem], period: Period = None) -> bytes:
    total_revenue = sum(r.totalRevenue for r in rows)
    average_price = sum(r.price for r in rows) / len(rows) if rows else 0

    pdf = PdfReportBuilder("Product Report", period, wide=True)
    pdf.add_summary("Product Summary", [
        ("Total Products", str(len(rows))),
        ("Total Revenue", format_money(total_revenue)),
        ("Average Price", format_money(average_price)),
    ])
    pdf.add_table(
        ["Product Name", "Category", "Avg Price", "Avg Cost", "Stock (kg)", "Total Sold", "Revenue", "Profit Margin"],
        [
            [
                truncate(r.name, 25),
                truncate(r.category or "N/A", 15),
                format_money(r.price),
                format_money(r.cost),
                format_number(r.currentStock),
                format_number(r.totalSold),
                format_money(r.totalRevenue),
                format_percentage(r.profitMargin),
            ]
            for r in rows
        ],
        title="Products",
    )
    return pdf.build()


def render_customer_report(rows: List[CustomerReportItem], period: Period = None) -> bytes:
    pdf = PdfReportBuilder("Customer Report", period, wide=True)
    pdf.add_summary("Customer Summary", [
        ("Total Customers", str(len(rows))),
        ("Total Spent", format_money(sum(r.totalSpent for r in rows))),
    ])
    pdf.add_table(
        ["Name", "Email", "Phone", "Total Orders", "Total Spent", "Avg Order", "First Purchase", "Last Purchase"],
        [
            [
                truncate(r.customerName, 22),
                truncate(r.customerEmail or "N/A", 25),
                r.customerPhone or "N/A",
                str(r.totalPurchases),
                format_money(r.totalSpent),
                format_money(r.averageOrderValue),
                format_date(r.firstPurchaseDate),
                format_date(r.lastPurchaseDate),
            ]
            for r in rows
        ],
        title="Customers",
    )
    return pdf.build()


def render_top_selling_report(rows: List[TopSellingItem], period: Period = None) -> bytes:
    pdf = PdfReportBuilder("Top Selling Products Report", period)
    pdf.add_summary("Top Selling Products Summary", [
        ("Top Products Shown", str(len(rows))),
        ("Total Revenue", format_money(sum(r.totalRevenue for r in rows))),
    ])
    pdf.add_table(
        ["Rank", "Product Name", "Units Sold", "Revenue", "Profit Margin", "Profit Amount"],
        [
            [
                str(index),
                truncate(r.name, 25),
                format_number(r.totalSold),
                format_money(r.totalRevenue),
                format_percentage(r.profitMargin),
                format_money(r.totalProfit),
            ]
            for index, r in enumerate(rows, start=1)
        ],
        title="Ranking",
    )
    return pdf.build()


def render_debtor_report(rows: List[SalesReportItem], outstanding, period: Period = None) -> bytes:
    pdf = PdfReportBuilder("Debtor / Credit Report", period)
    pdf.add_summary("Outstanding Payments Summary", [
        ("Outstanding Sales", str(len(rows))),
        ("Total Outstanding Amount", format_money(outstanding)),
    ])
    pdf.add_table(
        ["Sale ID", "Date", "Customer", "Amount", "Remaining", "Status", "Payment Method"],
        [
            [
                str(r.saleId)[:8] + "...",
                format_date(r.saleDate),
                truncate(r.customerName, 20),
                format_money(r.totalAmount),
                format_money(r.remainingAmount),
                r.paymentStatus,
                r.paymentMethod or "N/A",
            ]
            for r in rows
        ],
        title="Outstanding Payments",
        empty_message="No outstanding payments found!",
    )
    return pdf.build()


def render_profit_loss_report(data: ProfitLossData, period: Period = None) -> bytes:
    pdf = PdfReportBuilder("Profit and Loss Report", period)
    pdf.add_summary("Profit and Loss", [
        ("Sales Revenue", format_money(data.totalSales)),
        ("Deposits", format_money(data.totalDeposits)),
        ("Total Income", format_money(data.totalIncome)),
        ("Total Expenses", format_money(data.totalExpenses)),
        ("Net Profit", format_money(data.netProfit)),
    ])
    pdf.add_table(
        ["Expense Category", "Amount"],
        [[truncate(name, 35), format_money(amount)] for name, amount in data.expensesByCategory.items()],
        title="Expenses by Category",
    )
    return pdf.build()


def render_general_report(rows: List[GeneralReportItem], period: Period = None) -> bytes:
    pdf = PdfReportBuilder("General Report", period, wide=True)
    pdf.add_summary("Business Summary", [
        ("Total Products", str(len(rows))),
        ("Total Sales Amount", format_money(sum(r.sales.amount for r in rows))),
        ("Total Unpaid Amount", format_money(sum(r.unpaid.amount for r in rows))),
        ("Total Profit", format_money(sum(r.totalProfit for r in rows))),
    ])
    pdf.add_table(
        ["Product", "Opening", "New", "Damaged", "Sales", "Closing", "Unpaid", "Sales Amount", "Profit"],
        [
            [
                truncate(r.productName, 20),
                _box_kg(r.openingStock.boxes, r.openingStock.kg),
                _box_kg(r.newStock.boxes, r.newStock.kg),
                _box_kg(r.damaged.boxes, r.damaged.kg),
                _box_kg(r.sales.boxes, r.sales.kg),
                _box_kg(r.closingStock.boxes, r.closingStock.kg),
                format_money(r.unpaid.amount),
                format_money(r.sales.amount),
                format_money(r.totalProfit),
            ]
            for r in rows
        ],
        title="Product Movement",
    )
    return pdf.build()

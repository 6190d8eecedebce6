"""
Reportes financieros: resumen financiero, transacciones combinadas y
estado de pérdidas y ganancias.
"""

from collections import OrderedDict
from datetime import date, datetime, time
from decimal import Decimal
from typing import Iterable, List, Optional

from app.common.validators import as_decimal
from app.modules.transactions.models import Transaction

from ..schemas import (
    FinancialReportData, ProductSalesTotal, PaymentMethodTotal,
    TransactionReportItem, ProfitLossData,
)
from .base import BaseReportService, WALK_IN_CUSTOMER, unified_quantity

TRANSACTION_TYPES = ("sale", "expense", "deposit")


def _total(values: Iterable) -> Decimal:
    return sum((as_decimal(v) for v in values), Decimal("0"))


def summarize_financial(paid_sales: list, paid_expenses: list, approved_deposits: list, top_n: int = 10) -> FinancialReportData:
    total_sales = _total(s.total_amount for s in paid_sales)
    total_expenses = _total(e.amount for e in paid_expenses)

    products = OrderedDict()
    methods = OrderedDict()
    for sale in paid_sales:
        product = getattr(sale, "product", None)
        name = product.name if product is not None else f"Product-{sale.product_id}"
        entry = products.setdefault(sale.product_id, {"name": name, "quantity": Decimal("0"), "revenue": Decimal("0")})
        entry["quantity"] += unified_quantity(sale.boxes_quantity, sale.kg_quantity)
        entry["revenue"] += as_decimal(sale.total_amount)

        method = methods.setdefault(sale.payment_method or "unknown", {"count": 0, "amount": Decimal("0")})
        method["count"] += 1
        method["amount"] += as_decimal(sale.total_amount)

    top = sorted(products.items(), key=lambda kv: kv[1]["quantity"], reverse=True)[:top_n]

    return FinancialReportData(
        totalSales=total_sales,
        totalExpenses=total_expenses,
        totalDeposits=_total(d.amount for d in approved_deposits),
        netProfit=total_sales - total_expenses,
        salesCount=len(paid_sales),
        expenseCount=len(paid_expenses),
        depositCount=len(approved_deposits),
        averageSaleAmount=total_sales / len(paid_sales) if paid_sales else Decimal("0"),
        topSellingProducts=[
            ProductSalesTotal(
                productId=product_id,
                productName=data["name"],
                quantitySold=data["quantity"],
                totalRevenue=data["revenue"],
            )
            for product_id, data in top
        ],
        salesByPaymentMethod=[
            PaymentMethodTotal(paymentMethod=name, transactionCount=data["count"], totalAmount=data["amount"])
            for name, data in methods.items()
        ],
    )


def _sort_key(item: TransactionReportItem) -> datetime:
    value = item.date
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    return datetime.combine(value, time.min)


def merge_transactions(
    paid_sales: Iterable,
    paid_expenses: Iterable,
    approved_deposits: Iterable,
    transaction_type: Optional[str] = None,
) -> List[TransactionReportItem]:
    """Ventas, gastos y depósitos en una sola lista, más recientes primero."""
    items = []
    if transaction_type in (None, "sale"):
        for sale in paid_sales:
            items.append(TransactionReportItem(
                transactionId=sale.id,
                date=sale.date_time,
                type="sale",
                description=f"Sale to {sale.client_name or WALK_IN_CUSTOMER}",
                amount=as_decimal(sale.total_amount),
                paymentMethod=sale.payment_method,
                category="Sales",
            ))
    if transaction_type in (None, "expense"):
        for expense in paid_expenses:
            category = getattr(expense, "category", None)
            items.append(TransactionReportItem(
                transactionId=expense.expense_id,
                date=expense.date,
                type="expense",
                description=expense.title,
                amount=as_decimal(expense.amount),
                paymentMethod="cash",
                category=category.category_name if category is not None else "Business Expense",
            ))
    if transaction_type in (None, "deposit"):
        for deposit in approved_deposits:
            items.append(TransactionReportItem(
                transactionId=deposit.deposit_id,
                date=deposit.date_time,
                type="deposit",
                description=f"Deposit to {deposit.account_name}",
                amount=as_decimal(deposit.amount),
                paymentMethod=deposit.deposit_type,
                category="Deposits",
            ))

    items.sort(key=_sort_key, reverse=True)
    return items


def summarize_profit_loss(
    paid_sales: list,
    deposit_transactions: list,
    approved_deposits: list,
    paid_expenses: list,
) -> ProfitLossData:
    """net = ventas + depósitos - gastos"""
    total_sales = _total(s.total_amount for s in paid_sales)
    total_deposits = _total(t.total_amount for t in deposit_transactions) + _total(d.amount for d in approved_deposits)
    total_expenses = _total(e.amount for e in paid_expenses)

    by_category = OrderedDict()
    for expense in paid_expenses:
        category = getattr(expense, "category", None)
        name = category.category_name if category is not None else "Uncategorized"
        by_category[name] = by_category.get(name, Decimal("0")) + as_decimal(expense.amount)

    income = total_sales + total_deposits
    return ProfitLossData(
        totalSales=total_sales,
        totalDeposits=total_deposits,
        totalExpenses=total_expenses,
        totalIncome=income,
        netProfit=income - total_expenses,
        salesCount=len(paid_sales),
        depositCount=len(deposit_transactions) + len(approved_deposits),
        expenseCount=len(paid_expenses),
        expensesByCategory=dict(by_category),
    )


class FinancialReportService(BaseReportService):
    """Service for financial reports"""

    def get_financial_report(self, date_from: date, date_to: date) -> FinancialReportData:
        return summarize_financial(
            self._paid_sales(date_from, date_to),
            self._paid_expenses(date_from, date_to),
            self._approved_deposits(date_from, date_to),
        )

    def get_transaction_report(
        self,
        date_from: date,
        date_to: date,
        transaction_type: Optional[str] = None,
    ) -> List[TransactionReportItem]:
        return merge_transactions(
            self._paid_sales(date_from, date_to) if transaction_type in (None, "sale") else [],
            self._paid_expenses(date_from, date_to) if transaction_type in (None, "expense") else [],
            self._approved_deposits(date_from, date_to) if transaction_type in (None, "deposit") else [],
            transaction_type,
        )

    def get_profit_loss_report(self, date_from: date, date_to: date) -> ProfitLossData:
        deposit_transactions = self._apply_datetime_range(
            self.db.query(Transaction).filter(Transaction.deposit_type.isnot(None)),
            Transaction.date_time, date_from, date_to,
        ).all()
        return summarize_profit_loss(
            self._paid_sales(date_from, date_to),
            deposit_transactions,
            self._approved_deposits(date_from, date_to),
            self._paid_expenses(date_from, date_to),
        )

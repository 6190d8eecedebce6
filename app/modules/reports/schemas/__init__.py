"""
Estructuras agregadas que alimentan los reportes PDF.

Los montos se manejan como Decimal; las cantidades por kg se convierten a
cajas equivalentes con KG_PER_BOX cuando el reporte las unifica.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field


# ===== STOCK =====

class StockReportItem(BaseModel):
    productId: UUID
    productName: str
    category: Optional[str] = None
    boxes: int
    kg: Decimal
    currentStock: Decimal
    minStockLevel: Decimal
    maxStockLevel: Decimal
    stockValue: Decimal
    status: str


class StockReportSummary(BaseModel):
    totalProducts: int = 0
    inStockItems: int = 0
    lowStockItems: int = 0
    outOfStockItems: int = 0
    totalStockValue: Decimal = Decimal("0")


# ===== VENTAS =====

class SalesReportItem(BaseModel):
    saleId: UUID
    saleDate: Optional[datetime] = None
    customerName: str
    productName: Optional[str] = None
    quantity: Decimal
    unitPrice: Decimal
    totalAmount: Decimal
    amountPaid: Decimal
    remainingAmount: Decimal
    paymentMethod: Optional[str] = None
    paymentStatus: str


class SalesReportSummary(BaseModel):
    totalSales: int = 0
    totalRevenue: Decimal = Decimal("0")
    totalPaid: Decimal = Decimal("0")
    totalOutstanding: Decimal = Decimal("0")
    averageSale: Decimal = Decimal("0")


class CustomerReportItem(BaseModel):
    customerName: str
    customerEmail: Optional[str] = None
    customerPhone: Optional[str] = None
    totalPurchases: int
    totalSpent: Decimal
    averageOrderValue: Decimal
    firstPurchaseDate: Optional[datetime] = None
    lastPurchaseDate: Optional[datetime] = None


# ===== FINANCIERO =====

class ProductSalesTotal(BaseModel):
    productId: Optional[UUID] = None
    productName: str
    quantitySold: Decimal
    totalRevenue: Decimal


class PaymentMethodTotal(BaseModel):
    paymentMethod: str
    transactionCount: int
    totalAmount: Decimal


class FinancialReportData(BaseModel):
    totalSales: Decimal = Decimal("0")
    totalExpenses: Decimal = Decimal("0")
    totalDeposits: Decimal = Decimal("0")
    netProfit: Decimal = Decimal("0")
    salesCount: int = 0
    expenseCount: int = 0
    depositCount: int = 0
    averageSaleAmount: Decimal = Decimal("0")
    topSellingProducts: List[ProductSalesTotal] = Field(default_factory=list)
    salesByPaymentMethod: List[PaymentMethodTotal] = Field(default_factory=list)


class TransactionReportItem(BaseModel):
    transactionId: UUID
    date: Union[datetime, date]
    type: str
    description: str
    amount: Decimal
    paymentMethod: Optional[str] = None
    category: str


class ProfitLossData(BaseModel):
    totalSales: Decimal = Decimal("0")
    totalDeposits: Decimal = Decimal("0")
    totalExpenses: Decimal = Decimal("0")
    totalIncome: Decimal = Decimal("0")
    netProfit: Decimal = Decimal("0")
    salesCount: int = 0
    depositCount: int = 0
    expenseCount: int = 0
    expensesByCategory: Dict[str, Decimal] = Field(default_factory=dict)


# ===== PRODUCTOS =====

class ProductReportItem(BaseModel):
    productId: UUID
    name: str
    category: Optional[str] = None
    price: Decimal
    cost: Decimal
    currentStock: Decimal
    totalSold: Decimal = Decimal("0")
    totalRevenue: Decimal = Decimal("0")
    profitMargin: Decimal = Decimal("0")
    lastSaleDate: Optional[datetime] = None


class TopSellingItem(BaseModel):
    productId: UUID
    name: str
    totalSold: Decimal
    totalRevenue: Decimal
    totalProfit: Decimal
    profitMargin: Decimal


class BoxKg(BaseModel):
    boxes: int = 0
    kg: Decimal = Decimal("0")


class BoxKgAmount(BoxKg):
    amount: Decimal = Decimal("0")


class GeneralReportItem(BaseModel):
    productId: UUID
    productName: str
    openingStock: BoxKg
    newStock: BoxKg
    damaged: BoxKg
    sales: BoxKgAmount
    unpaid: BoxKgAmount
    closingStock: BoxKg
    boxProfit: Decimal
    kgProfit: Decimal
    totalProfit: Decimal

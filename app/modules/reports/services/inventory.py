"""
Reportes de inventario: stock actual, productos, más vendidos y el
reporte general de movimiento por producto.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from app.common.validators import as_decimal
from app.modules.inventory.models import StockAddition, StockMovement, MovementType, OperationStatus
from app.modules.sales.models import Sale, PaymentStatus

from ..schemas import (
    StockReportItem, StockReportSummary, ProductReportItem, TopSellingItem,
    GeneralReportItem, BoxKg, BoxKgAmount,
)
from .base import BaseReportService, KG_PER_BOX, unified_quantity

UNPAID_STATUSES = (PaymentStatus.PENDING.value, PaymentStatus.PARTIAL.value)


def _category_name(product) -> Optional[str]:
    category = getattr(product, "category", None)
    return category.name if category is not None else None


def stock_status(boxes: int, current_stock: Decimal, threshold: int) -> str:
    if current_stock == 0:
        return "out_of_stock"
    if boxes < threshold:
        return "low_stock"
    return "in_stock"


def build_stock_rows(products: Iterable, low_stock_only: bool = False) -> List[StockReportItem]:
    rows = []
    for product in products:
        boxes = product.quantity_box or 0
        kg = as_decimal(product.quantity_kg)
        threshold = product.boxed_low_stock_threshold or 0
        current = boxes * KG_PER_BOX + kg
        min_level = threshold * KG_PER_BOX
        item = StockReportItem(
            productId=product.product_id,
            productName=product.name,
            category=_category_name(product),
            boxes=boxes,
            kg=kg,
            currentStock=current,
            minStockLevel=min_level,
            maxStockLevel=min_level * 2,
            stockValue=boxes * as_decimal(product.cost_per_box) + kg * as_decimal(product.cost_per_kg),
            status=stock_status(boxes, current, threshold),
        )
        if low_stock_only and item.status == "in_stock":
            continue
        rows.append(item)
    return rows


def summarize_stock(rows: List[StockReportItem]) -> StockReportSummary:
    summary = StockReportSummary(totalProducts=len(rows))
    for row in rows:
        if row.status == "out_of_stock":
            summary.outOfStockItems += 1
        elif row.status == "low_stock":
            summary.lowStockItems += 1
        else:
            summary.inStockItems += 1
        summary.totalStockValue += row.stockValue
    return summary


def _sales_by_product(sales: Iterable) -> Dict[UUID, list]:
    grouped = defaultdict(list)
    for sale in sales:
        grouped[sale.product_id].append(sale)
    return grouped


def build_product_rows(products: Iterable, paid_sales: Iterable) -> List[ProductReportItem]:
    """
    Precio y costo promedio sobre el par caja/kg, stock actual en kg y
    totales de venta a partir de las ventas pagadas.
    """
    grouped = _sales_by_product(paid_sales)
    rows = []
    for product in products:
        price = (as_decimal(product.price_per_box) + as_decimal(product.price_per_kg)) / 2
        cost = (as_decimal(product.cost_per_box) + as_decimal(product.cost_per_kg)) / 2
        sales = grouped.get(product.product_id, [])
        rows.append(ProductReportItem(
            productId=product.product_id,
            name=product.name,
            category=_category_name(product),
            price=price,
            cost=cost,
            currentStock=(product.quantity_box or 0) * KG_PER_BOX + as_decimal(product.quantity_kg),
            totalSold=sum((unified_quantity(s.boxes_quantity, s.kg_quantity) for s in sales), Decimal("0")),
            totalRevenue=sum((as_decimal(s.total_amount) for s in sales), Decimal("0")),
            profitMargin=(price - cost) / price * 100 if price > 0 else Decimal("0"),
            lastSaleDate=max((s.date_time for s in sales if s.date_time), default=None),
        ))
    return rows


def build_top_selling(products: Iterable, paid_sales: Iterable, limit: int = 20) -> List[TopSellingItem]:
    grouped = _sales_by_product(paid_sales)
    items = []
    for product in products:
        sales = grouped.get(product.product_id, [])
        box_profit = as_decimal(product.price_per_box) - as_decimal(product.cost_per_box)
        kg_profit = as_decimal(product.price_per_kg) - as_decimal(product.cost_per_kg)

        total_sold = Decimal("0")
        revenue = Decimal("0")
        profit = Decimal("0")
        for sale in sales:
            total_sold += unified_quantity(sale.boxes_quantity, sale.kg_quantity)
            revenue += as_decimal(sale.total_amount)
            profit += sale.boxes_quantity * box_profit + as_decimal(sale.kg_quantity) * kg_profit

        items.append(TopSellingItem(
            productId=product.product_id,
            name=product.name,
            totalSold=total_sold,
            totalRevenue=revenue,
            totalProfit=profit,
            profitMargin=profit / revenue * 100 if revenue > 0 else Decimal("0"),
        ))

    items.sort(key=lambda item: item.totalSold, reverse=True)
    return items[:limit]


def build_general_row(product, additions: Iterable, damaged_movements: Iterable, sales: Iterable) -> GeneralReportItem:
    """
    opening = stock actual; closing = opening + new - sales - damaged.
    La ganancia usa (precio - costo) por caja y por kg sobre lo vendido.
    """
    opening = BoxKg(boxes=product.quantity_box or 0, kg=as_decimal(product.quantity_kg))

    new_stock = BoxKg()
    for addition in additions:
        new_stock.boxes += addition.boxes_added or 0
        new_stock.kg += as_decimal(addition.kg_added)

    damaged = BoxKg()
    for movement in damaged_movements:
        damaged.boxes += abs(movement.box_change or 0)
        damaged.kg += abs(as_decimal(movement.kg_change))

    sold = BoxKgAmount()
    unpaid = BoxKgAmount()
    for sale in sales:
        sold.boxes += sale.boxes_quantity or 0
        sold.kg += as_decimal(sale.kg_quantity)
        sold.amount += as_decimal(sale.total_amount)
        if sale.payment_status in UNPAID_STATUSES:
            unpaid.boxes += sale.boxes_quantity or 0
            unpaid.kg += as_decimal(sale.kg_quantity)
            unpaid.amount += as_decimal(sale.remaining_amount)

    box_profit = as_decimal(product.price_per_box) - as_decimal(product.cost_per_box)
    kg_profit = as_decimal(product.price_per_kg) - as_decimal(product.cost_per_kg)

    return GeneralReportItem(
        productId=product.product_id,
        productName=product.name,
        openingStock=opening,
        newStock=new_stock,
        damaged=damaged,
        sales=sold,
        unpaid=unpaid,
        closingStock=BoxKg(
            boxes=opening.boxes + new_stock.boxes - sold.boxes - damaged.boxes,
            kg=opening.kg + new_stock.kg - sold.kg - damaged.kg,
        ),
        boxProfit=box_profit,
        kgProfit=kg_profit,
        totalProfit=sold.boxes * box_profit + sold.kg * kg_profit,
    )


class InventoryReportService(BaseReportService):
    """Service for inventory-related reports"""

    def get_stock_report(self, category_id: Optional[UUID] = None, low_stock_only: bool = False):
        rows = build_stock_rows(self._products(category_id), low_stock_only)
        return rows, summarize_stock(rows)

    def get_product_report(
        self,
        category_id: Optional[UUID] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[ProductReportItem]:
        return build_product_rows(self._products(category_id), self._paid_sales(date_from, date_to))

    def get_top_selling_report(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: int = 20,
        category_id: Optional[UUID] = None,
    ) -> List[TopSellingItem]:
        return build_top_selling(self._products(category_id), self._paid_sales(date_from, date_to), limit)

    def get_general_report(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category_id: Optional[UUID] = None,
    ) -> List[GeneralReportItem]:
        rows = []
        for product in self._products(category_id):
            additions = self._apply_date_range(
                self.db.query(StockAddition).filter(
                    StockAddition.product_id == product.product_id,
                    StockAddition.status == OperationStatus.COMPLETED.value,
                ),
                StockAddition.delivery_date, date_from, date_to,
            ).all()
            damaged = self._apply_datetime_range(
                self.db.query(StockMovement).filter(
                    StockMovement.product_id == product.product_id,
                    StockMovement.movement_type == MovementType.DAMAGED.value,
                    StockMovement.status == OperationStatus.COMPLETED.value,
                ),
                StockMovement.created_at, date_from, date_to,
            ).all()
            sales = self._sales_query(date_from, date_to).filter(
                Sale.product_id == product.product_id
            ).all()
            rows.append(build_general_row(product, additions, damaged, sales))
        return rows

from pydantic import BaseModel


class DashboardStats(BaseModel):
    totalRevenue: float
    totalProfit: float
    totalExpenses: float
    productsInStock: int
    lowStockItems: int
    damagedItems: int
    revenueGrowth: float
    profitMargin: float


class RevenueChartPoint(BaseModel):
    month: str
    profit: float
    invest: float
    isCurrentMonth: bool


class FinancialOverviewItem(BaseModel):
    name: str
    value: int
    amount: float
    color: str
    icon: str

from .inventory import InventoryReportService
from .sales import SalesReportService
from .financial import FinancialReportService

__all__ = [
    "InventoryReportService",
    "SalesReportService",
    "FinancialReportService",
]

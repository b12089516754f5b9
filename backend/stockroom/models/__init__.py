from .inventory import Product, StockAlert
from .sales import Transaction, SaleLine
from .analytics import DailyAnalytics

__all__ = [
    'Product', 'StockAlert',
    'Transaction', 'SaleLine',
    'DailyAnalytics',
]

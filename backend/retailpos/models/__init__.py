from .tenancy import Store
from .auth import User, SessionToken
from .catalog import Category, Product
from .inventory import StockLog, DocumentSequence, STOCK_LOG_TYPES
from .purchasing import Supplier, PurchaseOrder, PurchaseOrderItem

__all__ = [
    'Store',
    'User', 'SessionToken',
    'Category', 'Product',
    'StockLog', 'DocumentSequence', 'STOCK_LOG_TYPES',
    'Supplier', 'PurchaseOrder', 'PurchaseOrderItem',
]

from .catalog import Product, Variant
from .sales import Sale, SaleItem, SalePayment
from .auth import User, SessionToken

__all__ = [
    'Product', 'Variant',
    'Sale', 'SaleItem', 'SalePayment',
    'User', 'SessionToken',
]

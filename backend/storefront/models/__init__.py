from .auth import User, SessionToken
from .inventory import Product
from .purchases import Purchase, PurchaseLine

__all__ = [
    'User', 'SessionToken',
    'Product',
    'Purchase', 'PurchaseLine',
]

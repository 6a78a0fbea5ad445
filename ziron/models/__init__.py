from .base import Base
from .collection import Collection
from .notification import Notification
from .product import Product
from .user import User

__all__ = [
    "Base",
    "Collection",
    "Notification",
    "Product",
    "User",
]

"""ORM models. Importing this package registers every table on Base.metadata."""

from grocerhub.models.catalog import CanonicalProduct, StoreOffering
from grocerhub.models.order import Order, OrderItem, OrderStatus, PaymentMethod, PaymentStatus
from grocerhub.models.store import Store
from grocerhub.models.user import Customer, Driver, Role, User

__all__ = [
    "CanonicalProduct",
    "StoreOffering",
    "Store",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "User",
    "Customer",
    "Driver",
    "Role",
]

from .product import Product
from .product_variant import ProductVariant
from .product_price import ProductPrice
from .cart_item import CartItem
from .order import Order
from .order_item import OrderItem
from .rental import Rental, RentalStatus, DepositStatus, DeliveryType
from .notification import Notification

__all__ = [
    "Product",
    "ProductVariant",
    "ProductPrice",
    "CartItem",
    "Order",
    "OrderItem",
    "Rental",
    "RentalStatus",
    "DepositStatus",
    "DeliveryType",
    "Notification",
]

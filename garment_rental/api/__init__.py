from .rental_routes import bp as rentals_bp
from .order_routes import bp as orders_bp
from .inventory_routes import bp as inventory_bp

__all__ = [
    "rentals_bp",
    "orders_bp",
    "inventory_bp",
]

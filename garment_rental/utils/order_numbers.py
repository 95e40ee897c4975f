import secrets
import time


def generate_order_number(prefix: str = "ORD") -> str:
    """``ORD-<epoch ms>-<6 hex>``; rental bookings use the ``RNT`` prefix."""
    return f"{prefix}-{int(time.time() * 1000)}-{secrets.token_hex(3).upper()}"

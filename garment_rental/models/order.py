from datetime import datetime

from garment_rental.extensions import db


# 'pending','confirmed','processing','shipped','delivered','cancelled','returned'
ORDER_STATUSES = ("pending", "confirmed", "processing", "shipped", "delivered", "cancelled", "returned")
CANCELLABLE_ORDER_STATUSES = ("pending", "confirmed")

# 'pending','paid','failed','refunded'
PAYMENT_STATUSES = ("pending", "paid", "failed", "refunded")

ORDER_TYPE_SALE = "sale"
ORDER_TYPE_RENTAL = "rental"


class Order(db.Model):
    """Transactional envelope shared by the sale path and rental bookings."""

    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    order_number = db.Column(db.String(50), nullable=False, unique=True)
    user_id = db.Column(db.Integer, nullable=False, index=True)

    order_type = db.Column(db.String(10), nullable=False, default=ORDER_TYPE_SALE)
    status = db.Column(db.String(20), nullable=False, default="pending")
    payment_status = db.Column(db.String(20), nullable=False, default="pending")
    payment_method = db.Column(db.String(50), nullable=True)

    subtotal = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    tax_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    shipping_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    # Rental bookings are placed before delivery details are collected.
    shipping_name = db.Column(db.String(150), nullable=True)
    shipping_email = db.Column(db.String(255), nullable=True)
    shipping_phone = db.Column(db.String(20), nullable=True)
    shipping_address_line1 = db.Column(db.String(255), nullable=True)
    shipping_address_line2 = db.Column(db.String(255), nullable=True)
    shipping_city = db.Column(db.String(100), nullable=True)
    shipping_state = db.Column(db.String(100), nullable=True)
    shipping_postal_code = db.Column(db.String(20), nullable=True)
    shipping_country = db.Column(db.String(100), nullable=True)

    billing_name = db.Column(db.String(150), nullable=True)
    billing_email = db.Column(db.String(255), nullable=True)
    billing_phone = db.Column(db.String(20), nullable=True)
    billing_address_line1 = db.Column(db.String(255), nullable=True)
    billing_address_line2 = db.Column(db.String(255), nullable=True)
    billing_city = db.Column(db.String(100), nullable=True)
    billing_state = db.Column(db.String(100), nullable=True)
    billing_postal_code = db.Column(db.String(20), nullable=True)
    billing_country = db.Column(db.String(100), nullable=True)

    notes = db.Column(db.Text, nullable=True)
    tracking_number = db.Column(db.String(100), nullable=True)

    ordered_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    confirmed_at = db.Column(db.DateTime, nullable=True)
    shipped_at = db.Column(db.DateTime, nullable=True)
    delivered_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    updated_at = db.Column(
        db.DateTime,
        nullable=True,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    items = db.relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="select",
    )
    rental = db.relationship("Rental", back_populates="order", uselist=False)

    def __repr__(self) -> str:
        return f"<Order id={self.id} number={self.order_number} status={self.status}>"

import enum
from datetime import datetime

from garment_rental.extensions import db


class RentalStatus(str, enum.Enum):
    BOOKED = "booked"
    CONFIRMED = "confirmed"
    OUT_FOR_DELIVERY = "out_for_delivery"
    ACTIVE = "active"
    RETURN_REQUESTED = "return_requested"
    PICKUP_SCHEDULED = "pickup_scheduled"
    RETURNED = "returned"
    INSPECTING = "inspecting"
    COMPLETED = "completed"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class DepositStatus(str, enum.Enum):
    HELD = "held"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"
    FORFEITED = "forfeited"


class DeliveryType(str, enum.Enum):
    STANDARD = "standard"
    EXPRESS = "express"
    PICKUP = "pickup"


# Statuses that no longer hold the garment's calendar
TERMINAL_RENTAL_STATUSES = (
    RentalStatus.CANCELLED,
    RentalStatus.COMPLETED,
    RentalStatus.RETURNED,
)


def _values(enum_cls):
    return [m.value for m in enum_cls]


class Rental(db.Model):
    __tablename__ = "rentals"
    __table_args__ = (
        db.CheckConstraint("rental_end_date > rental_start_date", name="ck_rental_dates_ordered"),
        db.Index("ix_rentals_product_variant_dates", "product_id", "variant_id", "rental_start_date", "rental_end_date"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)

    order_id = db.Column(
        db.Integer,
        db.ForeignKey("orders.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
    )
    user_id = db.Column(db.Integer, nullable=False, index=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
    )
    variant_id = db.Column(
        db.Integer,
        db.ForeignKey("product_variants.id", ondelete="RESTRICT"),
        nullable=True,
    )

    rental_start_date = db.Column(db.Date, nullable=False)
    rental_end_date = db.Column(db.Date, nullable=False)
    actual_return_date = db.Column(db.Date, nullable=True)
    rental_days = db.Column(db.Integer, nullable=False)

    # Price snapshot taken at booking time
    daily_rate = db.Column(db.Numeric(10, 2), nullable=False)
    total_rental_amount = db.Column(db.Numeric(10, 2), nullable=False)
    security_deposit = db.Column(db.Numeric(10, 2), nullable=False)

    late_fee = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    # Filled in by the admin inspection workflow
    damage_charges = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    refund_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    rental_status = db.Column(
        db.Enum(RentalStatus, values_callable=_values, native_enum=False, length=30, name="rental_status"),
        nullable=False,
        default=RentalStatus.BOOKED,
        index=True,
    )
    deposit_status = db.Column(
        db.Enum(DepositStatus, values_callable=_values, native_enum=False, length=30, name="deposit_status"),
        nullable=False,
        default=DepositStatus.HELD,
    )
    delivery_type = db.Column(
        db.Enum(DeliveryType, values_callable=_values, native_enum=False, length=20, name="delivery_type"),
        nullable=False,
        default=DeliveryType.STANDARD,
    )

    is_extended = db.Column(db.Boolean, nullable=False, default=False)
    extension_count = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=True, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime,
        nullable=True,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    __mapper_args__ = {"version_id_col": version_id}

    order = db.relationship("Order", back_populates="rental")
    product = db.relationship("Product", lazy="joined")
    variant = db.relationship("ProductVariant", lazy="joined")

    def __repr__(self) -> str:
        return f"<Rental id={self.id} product={self.product_id} status={self.rental_status}>"

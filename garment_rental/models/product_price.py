from datetime import datetime

from garment_rental.extensions import db


class ProductPrice(db.Model):
    __tablename__ = "product_prices"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Sale
    mrp = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    sale_price = db.Column(db.Numeric(10, 2), nullable=True)

    # Rental
    rental_price_per_day = db.Column(db.Numeric(10, 2), nullable=True)
    rental_price_3days = db.Column(db.Numeric(10, 2), nullable=True)
    rental_price_7days = db.Column(db.Numeric(10, 2), nullable=True)
    security_deposit = db.Column(db.Numeric(10, 2), nullable=True)
    late_fee_per_day = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    effective_from = db.Column(db.Date, nullable=True)
    effective_to = db.Column(db.Date, nullable=True)
    is_current = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime, nullable=True, default=datetime.utcnow)

    product = db.relationship("Product", back_populates="prices")

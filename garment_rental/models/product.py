from datetime import datetime

from garment_rental.extensions import db


class Product(db.Model):
    """Catalog read model. Catalog CRUD lives in another service."""

    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(100), nullable=False, unique=True)

    is_sale = db.Column(db.Boolean, nullable=False, default=True)
    is_rental = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_deleted = db.Column(db.Boolean, nullable=False, default=False)

    # Bumped by every booking/extension so they serialize per product.
    booking_version = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=True, default=datetime.utcnow)

    variants = db.relationship("ProductVariant", back_populates="product", lazy="select")
    prices = db.relationship("ProductPrice", back_populates="product", lazy="select")

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku} rental={self.is_rental}>"

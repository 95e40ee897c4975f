from garment_rental.extensions import db


class ProductVariant(db.Model):
    """
    A size/colour of a product; the physical inventory unit.

    stock_quantity: units we own. stock_allocated: units held against
    pending rentals/orders. Both are only ever changed through
    ``stock_service`` (atomic UPDATEs).
    """

    __tablename__ = "product_variants"
    __table_args__ = (
        db.CheckConstraint("stock_quantity >= 0", name="ck_variant_stock_quantity_non_negative"),
        db.CheckConstraint("stock_allocated >= 0", name="ck_variant_stock_allocated_non_negative"),
        db.CheckConstraint("stock_allocated <= stock_quantity", name="ck_variant_allocated_within_quantity"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    sku_variant = db.Column(db.String(100), nullable=True, unique=True)
    size = db.Column(db.String(20), nullable=True)
    color = db.Column(db.String(50), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    stock_allocated = db.Column(db.Integer, nullable=False, default=0)

    product = db.relationship("Product", back_populates="variants")

    def __repr__(self) -> str:
        return (
            f"<ProductVariant id={self.id} product={self.product_id} "
            f"qty={self.stock_quantity} allocated={self.stock_allocated}>"
        )

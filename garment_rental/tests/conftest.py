import itertools
from decimal import Decimal

import pytest

from sqlalchemy.pool import StaticPool
from flask_jwt_extended import create_access_token

from garment_rental import create_app
from garment_rental.config import TestConfig as BaseTestConfig
from garment_rental.extensions import db

# Import models so SQLAlchemy registers mappers/tables
import garment_rental.models  # noqa: F401
from garment_rental.models import CartItem, Product, ProductPrice, ProductVariant
from garment_rental.services import rental_service


_ids = itertools.count(1)


class PytestConfig(BaseTestConfig):
	SQLALCHEMY_DATABASE_URI = "sqlite://"
	SQLALCHEMY_ENGINE_OPTIONS = {
		"connect_args": {"check_same_thread": False},
		"poolclass": StaticPool,
	}
	JWT_SECRET_KEY = "test-secret"
	NOTIFICATIONS_ENABLED = True
	LATE_FEE_MULTIPLIER = "0.5"
	SALES_TAX_RATE = "0.18"


@pytest.fixture(scope="session")
def app():
	app = create_app(PytestConfig)
	with app.app_context():
		db.create_all()
		yield app
		db.session.remove()
		db.drop_all()


@pytest.fixture()
def client(app):
	return app.test_client()


@pytest.fixture()
def db_session(app):
	with app.app_context():
		yield db.session
		db.session.rollback()


@pytest.fixture()
def new_user_id():
	"""Users live in the auth service; here they are just fresh ids."""

	def _new_user_id() -> int:
		return 1000 + next(_ids)

	return _new_user_id


@pytest.fixture()
def make_token(app):
	def _make_token(user_id: int, roles: list[str] | None = None) -> str:
		roles = roles or []
		with app.app_context():
			return create_access_token(identity=str(user_id), additional_claims={"roles": roles})

	return _make_token


@pytest.fixture()
def auth_header(make_token):
	def _auth_header(user_id: int, roles: list[str] | None = None) -> dict:
		token = make_token(user_id, roles=roles)
		return {"Authorization": f"Bearer {token}"}

	return _auth_header


@pytest.fixture()
def make_product(db_session):
	def _make_product(
		name: str = "Silk Saree",
		is_rental: bool = True,
		is_sale: bool = True,
		is_active: bool = True,
		is_deleted: bool = False,
	):
		n = next(_ids)
		p = Product(
			name=name,
			sku=f"SKU-{n}",
			is_rental=is_rental,
			is_sale=is_sale,
			is_active=is_active,
			is_deleted=is_deleted,
		)
		db_session.add(p)
		db_session.commit()
		return p

	return _make_product


@pytest.fixture()
def make_variant(db_session):
	def _make_variant(
		product,
		stock_quantity: int = 3,
		stock_allocated: int = 0,
		size: str = "M",
		color: str = "Red",
		is_active: bool = True,
	):
		n = next(_ids)
		v = ProductVariant(
			product_id=product.id,
			sku_variant=f"{product.sku}-{size}-{n}",
			size=size,
			color=color,
			is_active=is_active,
			stock_quantity=stock_quantity,
			stock_allocated=stock_allocated,
		)
		db_session.add(v)
		db_session.commit()
		return v

	return _make_variant


@pytest.fixture()
def make_price(db_session):
	def _make_price(
		product,
		rental_price_per_day="500.00",
		security_deposit="2000.00",
		mrp="3000.00",
		sale_price="2500.00",
		is_current: bool = True,
		effective_from=None,
		effective_to=None,
	):
		pr = ProductPrice(
			product_id=product.id,
			mrp=Decimal(mrp),
			sale_price=Decimal(sale_price) if sale_price is not None else None,
			rental_price_per_day=Decimal(rental_price_per_day) if rental_price_per_day is not None else None,
			security_deposit=Decimal(security_deposit) if security_deposit is not None else None,
			is_current=is_current,
			effective_from=effective_from,
			effective_to=effective_to,
		)
		db_session.add(pr)
		db_session.commit()
		return pr

	return _make_price


@pytest.fixture()
def make_rentable(make_product, make_variant, make_price):
	"""Product + variant + current price, ready to book."""

	def _make_rentable(rental_price_per_day="500.00", security_deposit="2000.00", stock_quantity: int = 3):
		product = make_product()
		variant = make_variant(product, stock_quantity=stock_quantity)
		make_price(product, rental_price_per_day=rental_price_per_day, security_deposit=security_deposit)
		return product, variant

	return _make_rentable


@pytest.fixture()
def make_rental(db_session):
	def _make_rental(user_id: int, product, variant, start, end):
		return rental_service.create_rental(user_id, product.id, variant.id if variant else None, start, end)

	return _make_rental


@pytest.fixture()
def make_cart_item(db_session):
	def _make_cart_item(user_id: int, product, variant=None, quantity: int = 1):
		item = CartItem(
			user_id=user_id,
			product_id=product.id,
			variant_id=variant.id if variant else None,
			quantity=quantity,
		)
		db_session.add(item)
		db_session.commit()
		return item

	return _make_cart_item

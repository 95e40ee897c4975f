import threading
from datetime import date

import pytest

from garment_rental import create_app
from garment_rental.config import TestConfig
from garment_rental.extensions import db
from garment_rental.models import Product, ProductPrice, ProductVariant, Rental
from garment_rental.services import rental_service
from garment_rental.utils.errors import NotAvailable


WORKERS = 5


@pytest.fixture()
def file_app(tmp_path):
	"""Separate app on a file database so every thread gets its own connection."""

	class FileConfig(TestConfig):
		SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'race.db'}"
		SQLALCHEMY_ENGINE_OPTIONS = {
			"connect_args": {"check_same_thread": False, "timeout": 30},
		}
		JWT_SECRET_KEY = "test-secret"

	app = create_app(FileConfig)
	with app.app_context():
		db.create_all()
	yield app
	with app.app_context():
		db.session.remove()
		db.drop_all()
		db.engine.dispose()


def test_concurrent_bookings_for_same_dates_yield_one_rental(file_app):
	with file_app.app_context():
		product = Product(name="Bridal Lehenga", sku="RACE-1", is_rental=True)
		db.session.add(product)
		db.session.flush()
		variant = ProductVariant(product_id=product.id, sku_variant="RACE-1-M", size="M", stock_quantity=1)
		db.session.add(variant)
		db.session.add(ProductPrice(product_id=product.id, mrp=5000, rental_price_per_day=800, security_deposit=3000))
		db.session.commit()
		product_id, variant_id = product.id, variant.id

	barrier = threading.Barrier(WORKERS)
	results = []
	lock = threading.Lock()

	def book(user_id):
		with file_app.app_context():
			try:
				barrier.wait()
				rental_service.create_rental(user_id, product_id, variant_id, date(2030, 12, 20), date(2030, 12, 24))
				outcome = "booked"
			except NotAvailable:
				outcome = "not_available"
			except Exception as err:
				outcome = f"error: {err!r}"
			finally:
				db.session.remove()
			with lock:
				results.append(outcome)

	threads = [threading.Thread(target=book, args=(500 + i,)) for i in range(WORKERS)]
	for t in threads:
		t.start()
	for t in threads:
		t.join(timeout=120)

	assert sorted(results) == ["booked"] + ["not_available"] * (WORKERS - 1)

	with file_app.app_context():
		assert Rental.query.filter_by(product_id=product_id).count() == 1

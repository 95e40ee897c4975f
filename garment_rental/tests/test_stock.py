import pytest

from garment_rental.services import stock_service
from garment_rental.utils.errors import InsufficientStock, InvalidQuantity, VariantNotFound


def test_available_is_quantity_minus_allocated(make_product, make_variant):
	variant = make_variant(make_product(), stock_quantity=5, stock_allocated=2)

	stock = stock_service.get_stock(variant.id)
	assert stock["stock_quantity"] == 5
	assert stock["stock_allocated"] == 2
	assert stock["available"] == 3


def test_reserve_up_to_available(make_product, make_variant):
	variant = make_variant(make_product(), stock_quantity=5, stock_allocated=2)

	stock = stock_service.reserve(variant.id, 3)
	assert stock["stock_allocated"] == 5
	assert stock["available"] == 0

	with pytest.raises(InsufficientStock):
		stock_service.reserve(variant.id, 1)
	assert stock_service.get_stock(variant.id)["stock_allocated"] == 5


def test_release_never_goes_below_zero(make_product, make_variant):
	variant = make_variant(make_product(), stock_quantity=5, stock_allocated=2)

	assert stock_service.release(variant.id, 1)["stock_allocated"] == 1
	assert stock_service.release(variant.id, 10)["stock_allocated"] == 0


def test_add_and_reduce_stock(make_product, make_variant):
	variant = make_variant(make_product(), stock_quantity=2, stock_allocated=0)

	assert stock_service.add_stock(variant.id, 3)["stock_quantity"] == 5
	assert stock_service.reduce_stock(variant.id, 4)["stock_quantity"] == 1

	with pytest.raises(InsufficientStock):
		stock_service.reduce_stock(variant.id, 2)
	assert stock_service.get_stock(variant.id)["stock_quantity"] == 1


def test_reduce_keeps_allocation_within_quantity(make_product, make_variant):
	variant = make_variant(make_product(), stock_quantity=4, stock_allocated=3)

	stock = stock_service.reduce_stock(variant.id, 2)
	assert stock["stock_quantity"] == 2
	assert stock["stock_allocated"] == 1
	assert stock["stock_allocated"] <= stock["stock_quantity"]


def test_rental_hold_defaults_to_one_unit(make_product, make_variant):
	variant = make_variant(make_product(), stock_quantity=2, stock_allocated=0)

	assert stock_service.reserve_for_rental(variant.id)["stock_allocated"] == 1
	assert stock_service.reserve_for_rental(variant.id)["available"] == 0

	with pytest.raises(InsufficientStock):
		stock_service.reserve_for_rental(variant.id)

	assert stock_service.release_for_rental(variant.id)["stock_allocated"] == 1
	with pytest.raises(InvalidQuantity):
		stock_service.reserve_for_rental(variant.id, 0)


@pytest.mark.parametrize("qty", [0, -1, "2", 1.5, True])
def test_invalid_quantity(make_product, make_variant, qty):
	variant = make_variant(make_product())
	with pytest.raises(InvalidQuantity):
		stock_service.reserve(variant.id, qty)


def test_unknown_variant(db_session):
	with pytest.raises(VariantNotFound):
		stock_service.get_stock(999999)
	with pytest.raises(VariantNotFound):
		stock_service.reserve(999999, 1)
	with pytest.raises(VariantNotFound):
		stock_service.add_stock(999999, 1)


def test_stock_endpoints(client, auth_header, new_user_id, make_product, make_variant):
	variant = make_variant(make_product(), stock_quantity=5, stock_allocated=0)
	admin = auth_header(new_user_id(), roles=["ADMIN"])

	r = client.get(f"/api/inventory/variants/{variant.id}/stock")
	assert r.status_code == 200
	assert r.get_json()["data"]["available"] == 5

	r = client.post(f"/api/inventory/variants/{variant.id}/reserve", json={"quantity": 2}, headers=admin)
	assert r.status_code == 200
	assert r.get_json()["data"]["stock_allocated"] == 2

	r = client.post(f"/api/inventory/variants/{variant.id}/reserve", json={"quantity": 10}, headers=admin)
	assert r.status_code == 409
	assert r.get_json()["code"] == "INSUFFICIENT_STOCK"

	r = client.post(f"/api/inventory/variants/{variant.id}/add-stock", json={"quantity": 0}, headers=admin)
	assert r.status_code == 400

	r = client.post(f"/api/inventory/variants/{variant.id}/explode", json={"quantity": 1}, headers=admin)
	assert r.status_code == 404


def test_stock_mutation_requires_admin(client, auth_header, new_user_id, make_product, make_variant):
	variant = make_variant(make_product())

	r = client.post(
		f"/api/inventory/variants/{variant.id}/release",
		json={"quantity": 1},
		headers=auth_header(new_user_id()),
	)
	assert r.status_code == 403

	r = client.post(f"/api/inventory/variants/{variant.id}/release", json={"quantity": 1})
	assert r.status_code == 401

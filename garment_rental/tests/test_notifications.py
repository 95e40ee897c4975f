import json

from garment_rental.models import Notification
from garment_rental.services import notification_service


def test_emit_event_writes_outbox_row(db_session, new_user_id):
	user_id = new_user_id()

	assert notification_service.emit_event(user_id, "RENTAL_BOOKED", "Booked!", meta={"rental_id": 7})

	row = Notification.query.filter_by(user_id=user_id).one()
	assert row.event_type == "RENTAL_BOOKED"
	assert row.is_read is False
	meta = json.loads(row.meta_json)
	assert meta["rental_id"] == 7
	assert meta["event_type"] == "RENTAL_BOOKED"


def test_emit_event_dedupes_by_key(db_session, new_user_id):
	user_id = new_user_id()

	assert notification_service.emit_event(user_id, "ORDER_PLACED", "Placed", event_key="ORDER_PLACED:1")
	assert not notification_service.emit_event(user_id, "ORDER_PLACED", "Placed", event_key="ORDER_PLACED:1")
	assert notification_service.emit_event(user_id, "ORDER_PLACED", "Placed", event_key="ORDER_PLACED:2")

	assert Notification.query.filter_by(user_id=user_id).count() == 2


def test_emit_event_skips_empty_message(db_session, new_user_id):
	user_id = new_user_id()
	assert not notification_service.emit_event(user_id, "ORDER_PLACED", "   ")
	assert Notification.query.filter_by(user_id=user_id).count() == 0


def test_emit_event_disabled_by_config(app, db_session, new_user_id):
	user_id = new_user_id()
	app.config["NOTIFICATIONS_ENABLED"] = False
	try:
		assert not notification_service.emit_event(user_id, "ORDER_PLACED", "Placed")
	finally:
		app.config["NOTIFICATIONS_ENABLED"] = True
	assert Notification.query.filter_by(user_id=user_id).count() == 0


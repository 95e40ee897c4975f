import json

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from garment_rental.extensions.db import db
from garment_rental.models import Notification


def _meta_like_event_key(event_key: str) -> str:
	# meta_json is TEXT; a LIKE keeps this working on SQLite and MySQL alike.
	return f'%"event_key": "{event_key}"%'


def emit_event(
	user_id: int,
	event_type: str,
	message: str,
	meta: dict | None = None,
	*,
	event_key: str | None = None,
) -> bool:
	"""
	Queue an event for the email/SMS/push dispatcher.

	Fire-and-forget: runs after the business transaction committed, in its own
	transaction, and never raises. Returns True when a row was written.
	"""
	if not current_app.config.get("NOTIFICATIONS_ENABLED", True):
		return False

	debug = bool(current_app.config.get("NOTIFICATIONS_DEBUG", False))

	t = (event_type or "").strip()
	m = (message or "").strip()
	if not t or not m:
		if debug:
			current_app.logger.info("[notifications] skip: empty event_type/message")
		return False
	if len(m) > 300:
		m = m[:300]

	meta = dict(meta or {})
	meta.setdefault("event_type", t)
	if event_key:
		meta.setdefault("event_key", event_key)

	try:
		if event_key:
			# Retries/double clicks must not queue the same event twice.
			exists = (
				Notification.query.filter_by(user_id=user_id, event_type=t)
				.filter(Notification.meta_json.isnot(None))
				.filter(Notification.meta_json.like(_meta_like_event_key(event_key)))
				.first()
			)
			if exists is not None:
				if debug:
					current_app.logger.info("[notifications] dedupe skip user=%s event=%s key=%s", user_id, t, event_key)
				return False

		n = Notification(
			user_id=user_id,
			event_type=t,
			message=m,
			is_read=False,
			meta_json=json.dumps(meta, ensure_ascii=False, default=str),
		)
		db.session.add(n)
		db.session.commit()
		if debug:
			current_app.logger.info("[notifications] queued id=%s user=%s event=%s", n.id, user_id, t)
		return True
	except (SQLAlchemyError, TypeError, ValueError):
		db.session.rollback()
		current_app.logger.warning(
			"[notifications] failed to queue event=%s user=%s", t, user_id, exc_info=True
		)
		return False

from datetime import datetime

from garment_rental.extensions import db


class Notification(db.Model):
	"""Outbox row picked up by the email/SMS/push dispatcher."""

	__tablename__ = "notifications"

	id = db.Column(db.Integer, primary_key=True, autoincrement=True)
	user_id = db.Column(db.Integer, nullable=False, index=True)

	event_type = db.Column(db.String(60), nullable=False)
	message = db.Column(db.String(300), nullable=False)
	is_read = db.Column(db.Boolean, default=False, nullable=False, index=True)
	created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
	meta_json = db.Column(db.Text, nullable=True)

	def __repr__(self) -> str:
		return f"<Notification id={self.id} user={self.user_id} event={self.event_type}>"

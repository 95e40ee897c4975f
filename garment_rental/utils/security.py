from flask_jwt_extended import get_jwt, get_jwt_identity
from werkzeug.exceptions import Forbidden, Unauthorized


ADMIN_ROLES = ("ADMIN", "ADMINISTRATOR")


def current_user_id() -> int:
	"""User id carried by the bearer token (tokens are issued by the auth service)."""
	identity = get_jwt_identity()
	try:
		return int(identity)
	except (TypeError, ValueError):
		raise Unauthorized("Invalid token")


def is_admin() -> bool:
	claims = get_jwt() or {}
	roles = claims.get("roles") or []
	return any(str(r).upper() in ADMIN_ROLES for r in roles)


def require_admin() -> int:
	user_id = current_user_id()
	if not is_admin():
		raise Forbidden("Admin role required")
	return user_id

from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from garment_rental.schemas.order_schemas import OrderCreateSchema, OrderListQuerySchema, OrderStatusUpdateSchema
from garment_rental.services import order_service
from garment_rental.utils.responses import success_response
from garment_rental.utils.security import current_user_id, require_admin

bp = Blueprint("orders", __name__)

order_create_schema = OrderCreateSchema()
order_status_schema = OrderStatusUpdateSchema()
order_list_query_schema = OrderListQuerySchema()


@bp.post("")
@jwt_required()
def place_order():
    """Checkout the authenticated user's cart."""
    user_id = current_user_id()
    data = order_create_schema.load(request.get_json() or {})

    order = order_service.create_order(
        user_id,
        data["shipping_address"],
        billing_address=data.get("billing_address"),
        payment_method=data.get("payment_method"),
        notes=data.get("notes"),
    )
    return success_response(
        message="Order placed successfully",
        data=order_service.order_to_dict(order),
        status_code=201,
    )


@bp.get("")
@jwt_required()
def my_orders():
    orders = order_service.get_user_orders(current_user_id())
    return success_response(data={"items": [order_service.order_to_dict(o) for o in orders]})


@bp.get("/<int:order_id>")
@jwt_required()
def get_order(order_id: int):
    order = order_service.get_order_by_id(order_id, current_user_id())
    return success_response(data=order_service.order_to_dict(order))


@bp.delete("/<int:order_id>")
@jwt_required()
def cancel_order(order_id: int):
    order = order_service.cancel_order(order_id, current_user_id())
    return success_response(
        message="Order cancelled successfully",
        data=order_service.order_to_dict(order),
    )


@bp.get("/admin")
@jwt_required()
def admin_list_orders():
    """
    ?page=1&per_page=20&status=pending&payment_status=paid&from_date=2024-01-01T00:00:00
    """
    require_admin()
    args = order_list_query_schema.load(request.args.to_dict())
    page = args.pop("page")
    per_page = args.pop("per_page")
    data = order_service.list_orders(args, page=page, per_page=per_page)
    return success_response(data=data)


@bp.put("/admin/<int:order_id>/status")
@jwt_required()
def admin_update_order_status(order_id: int):
    require_admin()
    data = order_status_schema.load(request.get_json() or {})
    order = order_service.update_order_status(order_id, data["status"], data.get("tracking_number"))
    return success_response(
        message="Order status updated",
        data=order_service.order_to_dict(order),
    )

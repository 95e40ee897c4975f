from flask import Blueprint, abort, request
from flask_jwt_extended import jwt_required

from garment_rental.schemas.inventory_schemas import StockQuantitySchema
from garment_rental.services import stock_service
from garment_rental.utils.responses import success_response
from garment_rental.utils.security import require_admin

bp = Blueprint("inventory", __name__)

stock_quantity_schema = StockQuantitySchema()

# path segment -> stock operation
STOCK_OPERATIONS = {
    "reserve": stock_service.reserve_for_rental,
    "release": stock_service.release_for_rental,
    "add-stock": stock_service.add_stock,
    "reduce-stock": stock_service.reduce_stock,
}


@bp.get("/variants/<int:variant_id>/stock")
def get_stock(variant_id: int):
    return success_response(data=stock_service.get_stock(variant_id))


@bp.post("/variants/<int:variant_id>/<string:operation>")
@jwt_required()
def change_stock(variant_id: int, operation: str):
    require_admin()
    handler = STOCK_OPERATIONS.get(operation)
    if handler is None:
        abort(404)

    data = stock_quantity_schema.load(request.get_json() or {})
    stock = handler(variant_id, data["quantity"])
    return success_response(message="Stock updated", data=stock)

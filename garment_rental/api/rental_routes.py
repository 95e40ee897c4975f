from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from garment_rental.schemas.rental_schemas import (
    AvailabilityQuerySchema,
    DamageAssessmentSchema,
    RentalCreateSchema,
    RentalExtendSchema,
    RentalListQuerySchema,
    RentalStatusUpdateSchema,
)
from garment_rental.services import availability_service, rental_service
from garment_rental.utils.responses import success_response
from garment_rental.utils.security import current_user_id, require_admin

bp = Blueprint("rentals", __name__)

availability_query_schema = AvailabilityQuerySchema()
rental_create_schema = RentalCreateSchema()
rental_extend_schema = RentalExtendSchema()
rental_status_schema = RentalStatusUpdateSchema()
rental_list_query_schema = RentalListQuerySchema()
damage_schema = DamageAssessmentSchema()


@bp.get("/availability")
def check_availability():
    """
    ?product_id=1&variant_id=2&start_date=2024-01-01&end_date=2024-01-05
    """
    args = availability_query_schema.load(request.args.to_dict())
    data = availability_service.check_availability(
        args["product_id"],
        args.get("variant_id"),
        args["start_date"],
        args["end_date"],
    )
    return success_response(data=data)


@bp.post("")
@jwt_required()
def create_rental():
    """
    Body JSON:
    {
      "product_id": 1,
      "variant_id": 3,
      "rental_start_date": "2024-01-01",
      "rental_end_date": "2024-01-05",
      "delivery_type": "standard"
    }
    """
    user_id = current_user_id()
    data = rental_create_schema.load(request.get_json() or {})

    rental = rental_service.create_rental(
        user_id,
        data["product_id"],
        data.get("variant_id"),
        data["rental_start_date"],
        data["rental_end_date"],
        data.get("delivery_type"),
    )
    return success_response(
        message="Rental booking created successfully",
        data=rental_service.rental_to_dict(rental),
        status_code=201,
    )


@bp.get("/me")
@jwt_required()
def my_rentals():
    user_id = current_user_id()
    active_only = request.args.get("active", "0") == "1"
    rentals = rental_service.get_user_rentals(user_id, active_only=active_only)
    return success_response(data={"items": [rental_service.rental_to_dict(r) for r in rentals]})


@bp.get("/<int:rental_id>")
@jwt_required()
def get_rental(rental_id: int):
    rental = rental_service.get_rental_by_id(rental_id, current_user_id())
    return success_response(data=rental_service.rental_to_dict(rental))


@bp.put("/<int:rental_id>/return")
@jwt_required()
def return_rental(rental_id: int):
    rental = rental_service.return_rental(rental_id, current_user_id())
    return success_response(
        message="Rental returned successfully",
        data=rental_service.rental_to_dict(rental),
    )


@bp.put("/<int:rental_id>/extend")
@jwt_required()
def extend_rental(rental_id: int):
    data = rental_extend_schema.load(request.get_json() or {})
    rental = rental_service.extend_rental(rental_id, current_user_id(), data["new_end_date"])
    return success_response(
        message="Rental extended successfully",
        data=rental_service.rental_to_dict(rental),
    )


@bp.post("/<int:rental_id>/cancel")
@jwt_required()
def cancel_rental(rental_id: int):
    rental = rental_service.cancel_rental(rental_id, current_user_id())
    return success_response(
        message="Rental cancelled",
        data=rental_service.rental_to_dict(rental),
    )


@bp.get("/admin")
@jwt_required()
def admin_list_rentals():
    """
    ?page=1&per_page=10&status=booked&user_id=7&start_date=2024-01-01&end_date=2024-01-31
    """
    require_admin()
    args = rental_list_query_schema.load(request.args.to_dict())
    page = args.pop("page")
    per_page = args.pop("per_page")
    data = rental_service.list_rentals(args, page=page, per_page=per_page)
    return success_response(data=data)


@bp.put("/admin/<int:rental_id>/status")
@jwt_required()
def admin_update_status(rental_id: int):
    require_admin()
    data = rental_status_schema.load(request.get_json() or {})
    rental = rental_service.update_rental_status(rental_id, data["status"])
    return success_response(
        message="Rental status updated",
        data=rental_service.rental_to_dict(rental),
    )


@bp.put("/admin/<int:rental_id>/damage")
@jwt_required()
def admin_assess_damage(rental_id: int):
    require_admin()
    data = damage_schema.load(request.get_json() or {})
    rental = rental_service.assess_damage(rental_id, data["damage_charges"])
    return success_response(
        message="Damage charges recorded",
        data=rental_service.rental_to_dict(rental),
    )

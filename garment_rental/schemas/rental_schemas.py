from marshmallow import fields, validates_schema, ValidationError, validate

from garment_rental.extensions.ma import ma
from garment_rental.models.rental import DeliveryType


class RentalCreateSchema(ma.Schema):
    """
    Booking request. Price, deposit and rental days are computed by the
    service from the current catalog price.
    """

    product_id = fields.Integer(required=True, validate=validate.Range(min=1))
    variant_id = fields.Integer(required=False, load_default=None, allow_none=True, validate=validate.Range(min=1))
    rental_start_date = fields.Date(required=True)  # ISO 8601 (YYYY-MM-DD)
    rental_end_date = fields.Date(required=True)
    # Case-insensitive; the service maps unknown values to INVALID_DELIVERY_TYPE.
    delivery_type = fields.String(required=False, load_default=DeliveryType.STANDARD.value, allow_none=True)

    @validates_schema
    def validate_dates(self, data, **kwargs):
        start = data.get("rental_start_date")
        end = data.get("rental_end_date")
        if start and end and end <= start:
            raise ValidationError(
                "rental_end_date must be after rental_start_date",
                field_name="rental_end_date",
            )


class AvailabilityQuerySchema(ma.Schema):
    product_id = fields.Integer(required=True, validate=validate.Range(min=1))
    variant_id = fields.Integer(required=False, load_default=None, allow_none=True)
    start_date = fields.Date(required=True)
    end_date = fields.Date(required=True)

    @validates_schema
    def validate_dates(self, data, **kwargs):
        start = data.get("start_date")
        end = data.get("end_date")
        if start and end and end <= start:
            raise ValidationError("end_date must be after start_date", field_name="end_date")


class RentalExtendSchema(ma.Schema):
    new_end_date = fields.Date(required=True)


class RentalStatusUpdateSchema(ma.Schema):
    status = fields.String(required=True, validate=validate.Length(min=1, max=30))


class RentalListQuerySchema(ma.Schema):
    page = fields.Integer(required=False, load_default=1)
    per_page = fields.Integer(required=False, load_default=10)
    status = fields.String(required=False, load_default=None)
    user_id = fields.Integer(required=False, load_default=None)
    start_date = fields.Date(required=False, load_default=None)
    end_date = fields.Date(required=False, load_default=None)


class DamageAssessmentSchema(ma.Schema):
    damage_charges = fields.Decimal(required=True, places=2, validate=validate.Range(min=0))

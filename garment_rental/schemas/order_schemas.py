from marshmallow import fields, validate

from garment_rental.extensions.ma import ma


class AddressSchema(ma.Schema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    email = fields.Email(required=True)
    phone = fields.String(required=True, validate=validate.Length(min=5, max=20))
    address_line1 = fields.String(required=True, validate=validate.Length(min=1, max=255))
    address_line2 = fields.String(required=False, load_default=None, allow_none=True)
    city = fields.String(required=True, validate=validate.Length(min=1, max=100))
    state = fields.String(required=True, validate=validate.Length(min=1, max=100))
    postal_code = fields.String(required=True, validate=validate.Length(min=3, max=20))
    country = fields.String(required=False, load_default=None, allow_none=True)


class OrderCreateSchema(ma.Schema):
    shipping_address = fields.Nested(AddressSchema, required=True)
    billing_address = fields.Nested(AddressSchema, required=False, load_default=None, allow_none=True)
    payment_method = fields.String(required=False, load_default=None, allow_none=True, validate=validate.Length(max=50))
    notes = fields.String(required=False, load_default=None, allow_none=True)


class OrderStatusUpdateSchema(ma.Schema):
    status = fields.String(required=True, validate=validate.Length(min=1, max=20))
    tracking_number = fields.String(required=False, load_default=None, allow_none=True, validate=validate.Length(max=100))


class OrderListQuerySchema(ma.Schema):
    page = fields.Integer(required=False, load_default=1)
    per_page = fields.Integer(required=False, load_default=20)
    status = fields.String(required=False, load_default=None)
    payment_status = fields.String(required=False, load_default=None)
    order_type = fields.String(required=False, load_default=None)
    user_id = fields.Integer(required=False, load_default=None)
    from_date = fields.DateTime(required=False, load_default=None)
    to_date = fields.DateTime(required=False, load_default=None)

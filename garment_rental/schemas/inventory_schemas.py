from marshmallow import fields, validate

from garment_rental.extensions.ma import ma


class StockQuantitySchema(ma.Schema):
    quantity = fields.Integer(required=True, strict=True, validate=validate.Range(min=1))

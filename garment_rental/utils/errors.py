from enum import Enum

from flask import jsonify
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    ACCESS_DENIED = "access_denied"
    INVALID_STATE = "invalid_state"
    PRICING_MISSING = "pricing_missing"
    CART_EMPTY = "cart_empty"


# Single place where error kinds become HTTP status codes.
STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.ACCESS_DENIED: 403,
    ErrorKind.INVALID_STATE: 409,
    ErrorKind.PRICING_MISSING: 422,
    ErrorKind.CART_EMPTY: 400,
}


class DomainError(Exception):
    """
    Business rule failure raised by the services.

    Subclasses pin ``kind`` (what the API layer cares about) and ``code``
    (a stable identifier clients can branch on).
    """

    kind = ErrorKind.VALIDATION
    code = "DOMAIN_ERROR"
    default_message = "Request could not be processed"

    def __init__(self, message=None, payload=None):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.payload = payload or {}

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


# Not found

class ProductNotFound(DomainError):
    kind = ErrorKind.NOT_FOUND
    code = "PRODUCT_NOT_FOUND"
    default_message = "Product not found"


class VariantNotFound(DomainError):
    kind = ErrorKind.NOT_FOUND
    code = "VARIANT_NOT_FOUND"
    default_message = "Product variant not found"


class RentalNotFound(DomainError):
    kind = ErrorKind.NOT_FOUND
    code = "RENTAL_NOT_FOUND"
    default_message = "Rental not found"


class OrderNotFound(DomainError):
    kind = ErrorKind.NOT_FOUND
    code = "ORDER_NOT_FOUND"
    default_message = "Order not found"


# Validation

class InvalidDateRange(DomainError):
    kind = ErrorKind.VALIDATION
    code = "INVALID_DATE_RANGE"
    default_message = "Rental period must be at least 1 day"


class InvalidQuantity(DomainError):
    kind = ErrorKind.VALIDATION
    code = "INVALID_QUANTITY"
    default_message = "Quantity must be a positive integer"


class InvalidAmount(DomainError):
    kind = ErrorKind.VALIDATION
    code = "INVALID_AMOUNT"
    default_message = "Amount must not be negative"


class InvalidDeliveryType(DomainError):
    kind = ErrorKind.VALIDATION
    code = "INVALID_DELIVERY_TYPE"
    default_message = "Delivery type must be one of: standard, express, pickup"


class InvalidRentalStatus(DomainError):
    kind = ErrorKind.VALIDATION
    code = "INVALID_RENTAL_STATUS"
    default_message = "Unknown rental status"


class InvalidOrderStatus(DomainError):
    kind = ErrorKind.VALIDATION
    code = "INVALID_ORDER_STATUS"
    default_message = "Unknown order status"


class ProductNotRentable(DomainError):
    kind = ErrorKind.VALIDATION
    code = "PRODUCT_NOT_RENTABLE"
    default_message = "Product is not available for rental"


# Conflicts

class NotAvailable(DomainError):
    kind = ErrorKind.CONFLICT
    code = "NOT_AVAILABLE"
    default_message = "Product is not available for the selected dates"


class OutOfStock(DomainError):
    kind = ErrorKind.CONFLICT
    code = "OUT_OF_STOCK"
    default_message = "Product variant is out of stock"


class InsufficientStock(DomainError):
    kind = ErrorKind.CONFLICT
    code = "INSUFFICIENT_STOCK"
    default_message = "Insufficient stock"


class ProductUnavailable(DomainError):
    kind = ErrorKind.CONFLICT
    code = "PRODUCT_UNAVAILABLE"
    default_message = "Product is not available"


class VariantUnavailable(DomainError):
    kind = ErrorKind.CONFLICT
    code = "VARIANT_UNAVAILABLE"
    default_message = "Product variant is not available"


class ConcurrentUpdate(DomainError):
    kind = ErrorKind.CONFLICT
    code = "CONCURRENT_UPDATE"
    default_message = "The record was modified by another request, try again"


# Ownership

class AccessDenied(DomainError):
    kind = ErrorKind.ACCESS_DENIED
    code = "ACCESS_DENIED"
    default_message = "Access denied"


# State

class InvalidState(DomainError):
    kind = ErrorKind.INVALID_STATE
    code = "INVALID_STATE"
    default_message = "Operation not allowed in the current state"


class AlreadyReturned(InvalidState):
    code = "ALREADY_RETURNED"
    default_message = "Rental already returned"


class InvalidStatusTransition(InvalidState):
    code = "INVALID_STATUS_TRANSITION"
    default_message = "Status transition not allowed"


class OrderNotCancellable(InvalidState):
    code = "ORDER_NOT_CANCELLABLE"
    default_message = "Order cannot be cancelled"


# Pricing / cart

class PricingMissing(DomainError):
    kind = ErrorKind.PRICING_MISSING
    code = "PRICING_MISSING"
    default_message = "Product pricing not found"


class PriceMissing(PricingMissing):
    code = "PRICE_MISSING"
    default_message = "Price not set for product"


class CartEmpty(DomainError):
    kind = ErrorKind.CART_EMPTY
    code = "CART_EMPTY"
    default_message = "Cart is empty"


def register_error_handlers(app):

    @app.errorhandler(DomainError)
    def handle_domain_error(err: DomainError):
        response = {
            "success": False,
            "message": err.message,
            "code": err.code,
            "kind": err.kind.value,
        }
        if err.payload:
            response["payload"] = err.payload

        return jsonify(response), STATUS_BY_KIND[err.kind]

    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err: ValidationError):
        response = {
            "success": False,
            "message": "Invalid data",
            "errors": err.messages if hasattr(err, "messages") else str(err),
        }
        return jsonify(response), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        response = {
            "success": False,
            "message": err.description or "HTTP error",
        }
        return jsonify(response), err.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        app.logger.exception(err)

        response = {
            "success": False,
            "message": "Internal server error",
        }
        return jsonify(response), 500

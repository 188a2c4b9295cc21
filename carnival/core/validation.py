from typing import Any, Iterable, List, Mapping, NamedTuple, Type

from pydantic import BaseModel, ValidationError


class FieldError(NamedTuple):
    field: str
    message: str


LABELS = {
    "email": "Email",
    "password": "Password",
    "firstName": "First name",
    "lastName": "Last name",
    "title": "Product title",
    "description": "Product description",
    "price": "Price",
    "categoryId": "Category selection",
    "productId": "Product",
    "receiverId": "Receiver",
    "currentPassword": "Current password",
    "newPassword": "New password",
    "shippingAddress": "Shipping address",
    "paymentIntentId": "Payment intent",
    "content": "Message content",
    "status": "Status",
}

MESSAGES = {
    "email": {"value_error": "Please provide a valid email address"},
    "password": {"string_too_short": "Password must be at least 8 characters long"},
    "newPassword": {"string_too_short": "Password must be at least 8 characters long"},
    "firstName": {
        "string_too_short": "First name must be at least 2 characters long",
        "string_too_long": "First name cannot exceed 50 characters",
    },
    "lastName": {
        "string_too_short": "Last name must be at least 2 characters long",
        "string_too_long": "Last name cannot exceed 50 characters",
    },
    "phone": {"string_pattern_mismatch": "Please provide a valid phone number"},
    "address": {"string_too_long": "Address cannot exceed 500 characters"},
    "city": {"string_too_long": "City cannot exceed 100 characters"},
    "postalCode": {"string_too_long": "Postal code cannot exceed 20 characters"},
    "carnivalGroupId": {"uuid_parsing": "Please select a valid carnival group"},
    "title": {
        "string_too_short": "Product title must be at least 5 characters long",
        "string_too_long": "Product title cannot exceed 100 characters",
    },
    "description": {
        "string_too_short": "Description must be at least 20 characters long",
        "string_too_long": "Description cannot exceed 2000 characters",
    },
    "price": {
        "greater_than": "Price must be a positive number",
        "decimal_parsing": "Price must be a positive number",
        "decimal_type": "Price must be a positive number",
        "decimal_max_digits": "Price is too large",
    },
    "condition": {"enum": "Please select a valid condition"},
    "categoryId": {"uuid_parsing": "Please select a valid category"},
    "size": {"string_too_long": "Size cannot exceed 50 characters"},
    "color": {"string_too_long": "Color cannot exceed 50 characters"},
    "material": {"string_too_long": "Material cannot exceed 100 characters"},
    "paymentMethod": {"enum": "Please select a valid payment method"},
    "paymentMethodType": {"enum": "Please select a valid payment method"},
    "status": {"enum": "Please select a valid order status"},
}


SOURCES = ("body", "query", "path", "header")


def _field_name(loc: Iterable[Any]) -> str:
    parts = [str(part) for part in loc]
    if parts and parts[0] in SOURCES:
        parts = parts[1:]
    return parts[0] if parts else "body"


def describe_errors(errors: Iterable[Mapping[str, Any]]) -> List[FieldError]:
    """Turn pydantic error dicts into (field, message) pairs, keeping their order."""
    described = []
    for error in errors:
        kind = error.get("type", "")
        field = "body" if kind == "json_invalid" else _field_name(error.get("loc", ()))
        message = MESSAGES.get(field, {}).get(kind)
        if message is None and kind == "missing":
            message = f"{LABELS.get(field, field)} is required"
        if message is None and kind == "uuid_parsing":
            message = f"{LABELS.get(field, field)} must be a valid identifier"
        described.append(FieldError(field, message or error.get("msg", "Invalid value")))
    return described


def validate(schema: Type[BaseModel], payload: Any) -> List[FieldError]:
    """Check ``payload`` against every rule of ``schema``.

    Returns an empty list when the payload is acceptable. The payload itself
    is never modified.
    """
    try:
        schema.model_validate(payload)
    except ValidationError as exc:
        return describe_errors(exc.errors())
    return []


def as_details(errors: Iterable[FieldError]) -> List[dict]:
    return [error._asdict() for error in errors]

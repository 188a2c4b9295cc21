from decimal import Decimal

from carnival.core.validation import FieldError, as_details, validate
from carnival.models.schemas import LoginIn, ProductCreate, ProductUpdate, RegisterIn

VALID_REGISTRATION = {
    "email": "jan@carnival.be",
    "password": "Str0ng!Pass",
    "firstName": "Jan",
    "lastName": "Peeters",
}


def test_valid_registration_has_no_errors():
    assert validate(RegisterIn, VALID_REGISTRATION) == []


def test_missing_fields_are_all_reported_in_order():
    errors = validate(RegisterIn, {})
    assert [e.field for e in errors] == ["email", "password", "firstName", "lastName"]
    assert errors[0] == FieldError("email", "Email is required")
    assert errors[2].message == "First name is required"


def test_password_rules():
    short = validate(RegisterIn, {**VALID_REGISTRATION, "password": "Ab1!"})
    assert short == [FieldError("password", "Password must be at least 8 characters long")]

    weak = validate(RegisterIn, {**VALID_REGISTRATION, "password": "alllowercase1!"})
    assert len(weak) == 1
    assert weak[0].field == "password"
    assert "uppercase" in weak[0].message

    leading_space = validate(RegisterIn, {**VALID_REGISTRATION, "password": " Str0ng!Pass"})
    assert [e.field for e in leading_space] == ["password"]


def test_invalid_email_and_phone():
    errors = validate(RegisterIn, {**VALID_REGISTRATION, "email": "nope", "phone": "call me"})
    assert FieldError("email", "Please provide a valid email address") in errors
    assert FieldError("phone", "Please provide a valid phone number") in errors


def test_empty_phone_is_allowed():
    assert validate(RegisterIn, {**VALID_REGISTRATION, "phone": ""}) == []


def test_payload_is_not_modified():
    payload = {**VALID_REGISTRATION, "firstName": "J"}
    snapshot = dict(payload)
    validate(RegisterIn, payload)
    assert payload == snapshot


def test_login_requires_password():
    assert validate(LoginIn, {"email": "jan@carnival.be"}) == [FieldError("password", "Password is required")]


def test_product_rules():
    errors = validate(
        ProductCreate,
        {
            "title": "Hat",
            "description": "too short",
            "price": -3,
            "categoryId": "not-a-uuid",
            "condition": "broken",
        },
    )
    assert as_details(errors) == [
        {"field": "title", "message": "Product title must be at least 5 characters long"},
        {"field": "description", "message": "Description must be at least 20 characters long"},
        {"field": "price", "message": "Price must be a positive number"},
        {"field": "condition", "message": "Please select a valid condition"},
        {"field": "categoryId", "message": "Please select a valid category"},
    ]


def test_price_is_rounded_to_cents():
    payload = {
        "title": "Feather hat",
        "description": "Red feather hat from the Aalst parade",
        "price": "12.345",
        "categoryId": "0b8f3f2e-3c55-4f1c-9a55-0c1f6c9a1d11",
    }
    assert validate(ProductCreate, payload) == []
    assert ProductCreate.model_validate(payload).price == Decimal("12.35")


def test_product_update_fields_are_optional():
    assert validate(ProductUpdate, {}) == []
    assert validate(ProductUpdate, {"title": "Hat"})[0].field == "title"

import re
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, EmailStr, Field, StringConstraints
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from carnival.models.entities import OrderStatus, PaymentMethod, ProductCondition

PASSWORD_RULES = (r"[a-z]", r"[A-Z]", r"\d", r"[@$!%*?&]")
PASSWORD_FIRST_CHAR = r"[A-Za-z\d@$!%*?&]"


def _password_complexity(value: str) -> str:
    if not re.match(PASSWORD_FIRST_CHAR, value) or not all(re.search(rule, value) for rule in PASSWORD_RULES):
        raise PydanticCustomError(
            "password_complexity",
            "Password must contain at least one uppercase letter, one lowercase letter, one number, and one special character",
        )
    return value


Password = Annotated[str, StringConstraints(min_length=8), AfterValidator(_password_complexity)]
Required = Annotated[str, StringConstraints(min_length=1)]
PersonName = Annotated[str, StringConstraints(min_length=2, max_length=50)]
Phone = Annotated[str, StringConstraints(pattern=r"^([+]?[\d\s()-]+)?$")]
Address = Annotated[str, StringConstraints(max_length=500)]
City = Annotated[str, StringConstraints(max_length=100)]
PostalCode = Annotated[str, StringConstraints(max_length=20)]

Title = Annotated[str, StringConstraints(min_length=5, max_length=100)]
Description = Annotated[str, StringConstraints(min_length=20, max_length=2000)]


def _round_cents(value):
    """Round prices to cents; unparseable input is left for the decimal validator to reject."""
    try:
        return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        return value


Price = Annotated[Decimal, Field(gt=0, max_digits=10, decimal_places=2), BeforeValidator(_round_cents)]
Size = Annotated[str, StringConstraints(max_length=50)]
Color = Annotated[str, StringConstraints(max_length=50)]
Material = Annotated[str, StringConstraints(max_length=100)]


class InputSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Requests ---

class RegisterIn(InputSchema):
    email: EmailStr
    password: Password
    first_name: PersonName
    last_name: PersonName
    phone: Optional[Phone] = None
    carnival_group_id: Optional[str] = None
    address: Optional[Address] = None
    city: Optional[City] = None
    postal_code: Optional[PostalCode] = None


class LoginIn(InputSchema):
    email: EmailStr
    password: Required


class ProductCreate(InputSchema):
    title: Title
    description: Description
    price: Price
    condition: ProductCondition = ProductCondition.GOOD
    category_id: UUID
    size: Optional[Size] = None
    color: Optional[Color] = None
    material: Optional[Material] = None


class ProductUpdate(InputSchema):
    """Same per-field rules as ProductCreate, every field optional."""

    title: Optional[Title] = None
    description: Optional[Description] = None
    price: Optional[Price] = None
    condition: Optional[ProductCondition] = None
    category_id: Optional[UUID] = None
    size: Optional[Size] = None
    color: Optional[Color] = None
    material: Optional[Material] = None
    is_available: Optional[bool] = None


class ProfileUpdate(InputSchema):
    first_name: Optional[PersonName] = None
    last_name: Optional[PersonName] = None
    phone: Optional[Phone] = None
    address: Optional[Address] = None
    city: Optional[City] = None
    postal_code: Optional[PostalCode] = None
    carnival_group_id: Optional[UUID] = None


class PasswordChange(InputSchema):
    current_password: Required
    new_password: Password


class PaymentIntentIn(InputSchema):
    product_id: UUID
    shipping_address: Annotated[str, StringConstraints(min_length=5, max_length=500)]
    payment_method: PaymentMethod = PaymentMethod.BANCONTACT


class PaymentConfirmIn(InputSchema):
    payment_intent_id: Required
    payment_method_type: Optional[PaymentMethod] = None


class OrderStatusIn(InputSchema):
    status: OrderStatus


class MessageIn(InputSchema):
    receiver_id: UUID
    content: Annotated[str, StringConstraints(min_length=1, max_length=2000)]
    product_id: Optional[UUID] = None


# --- Responses ---

class OutputSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


def dump(schema, obj) -> dict:
    return schema.model_validate(obj).model_dump(mode="json", by_alias=True)


class GroupBrief(OutputSchema):
    name: str
    city: str
    country: Optional[str] = None


class GroupSummary(OutputSchema):
    id: str
    name: str
    city: str
    province: Optional[str] = None
    country: Optional[str] = None
    verified: bool


class MemberOut(OutputSchema):
    id: str
    first_name: str
    last_name: str


class GroupDetail(GroupSummary):
    description: Optional[str] = None
    website: Optional[str] = None
    created_at: datetime


class CategoryOut(OutputSchema):
    id: str
    name: str
    slug: str
    emoji: Optional[str] = None


class CategoryBrief(OutputSchema):
    name: str
    slug: str
    emoji: Optional[str] = None


class UserOut(OutputSchema):
    id: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    is_verified: bool
    is_active: bool
    last_login_at: Optional[datetime] = None
    carnival_group_id: str
    created_at: datetime
    updated_at: datetime
    carnival_group: Optional[GroupBrief] = None


class SellerOut(MemberOut):
    carnival_group: Optional[GroupBrief] = None


class ImageOut(OutputSchema):
    id: str
    filename: str
    original_name: str
    mime_type: str
    size: int
    url: str
    is_primary: bool


class ProductOut(OutputSchema):
    id: str
    title: str
    description: str
    price: Decimal
    condition: ProductCondition
    size: Optional[str] = None
    color: Optional[str] = None
    material: Optional[str] = None
    is_available: bool
    is_featured: bool
    view_count: int
    seller_id: str
    category_id: str
    created_at: datetime
    updated_at: datetime
    seller: Optional[SellerOut] = None
    category: Optional[CategoryBrief] = None
    images: List[ImageOut] = []


class ProductBrief(OutputSchema):
    id: str
    title: str
    price: Decimal
    is_available: bool


class PublicUserOut(MemberOut):
    city: Optional[str] = None
    created_at: datetime
    carnival_group: Optional[GroupBrief] = None


class OrderOut(OutputSchema):
    id: str
    order_number: str
    item_price: Decimal
    platform_fee: Decimal
    total_amount: Decimal
    status: OrderStatus
    payment_method: PaymentMethod
    payment_intent_id: Optional[str] = None
    shipping_address: str
    buyer_id: str
    seller_id: str
    product_id: str
    created_at: datetime
    updated_at: datetime
    product: Optional[ProductBrief] = None


class MessageOut(OutputSchema):
    id: str
    content: str
    is_read: bool
    sender_id: str
    receiver_id: str
    product_id: Optional[str] = None
    created_at: datetime
    sender: Optional[MemberOut] = None
    receiver: Optional[MemberOut] = None

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship, validates

from carnival.core.errors import DataIntegrityError

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class ProductCondition(str, enum.Enum):
    NEW = "new"
    LIKE_NEW = "like-new"
    GOOD = "good"
    FAIR = "fair"
    NEEDS_REPAIR = "needs-repair"


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentMethod(str, enum.Enum):
    BANCONTACT = "bancontact"
    VISA = "visa"
    MASTERCARD = "mastercard"
    PAYPAL = "paypal"


def _enum_column(enum_cls, name: str, **kwargs) -> Column:
    # stored as the lowercase value ("like-new"), not the member name
    return Column(
        Enum(
            enum_cls,
            name=name,
            native_enum=False,
            length=20,
            validate_strings=True,
            values_callable=lambda members: [m.value for m in members],
        ),
        **kwargs,
    )


class TimestampMixin:
    id = Column(String(36), primary_key=True, default=new_id)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class CarnivalGroup(TimestampMixin, Base):
    __tablename__ = "carnival_groups"

    name = Column(String(255), nullable=False, unique=True)
    city = Column(String(255), nullable=False)
    province = Column(String(255), nullable=True)
    country = Column(String(255), default="Belgium")
    description = Column(Text, nullable=True)
    website = Column(String(255), nullable=True)
    verified = Column(Boolean, default=False, nullable=False)

    users = relationship("User", back_populates="carnival_group")


class User(TimestampMixin, Base):
    __tablename__ = "users"

    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(255), nullable=True)
    postal_code = Column(String(20), nullable=True)
    is_verified = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    carnival_group_id = Column(String(36), ForeignKey("carnival_groups.id"), nullable=False)

    carnival_group = relationship("CarnivalGroup", back_populates="users")
    products = relationship("Product", back_populates="seller")

    @validates("email")
    def _check_email(self, key, value):
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError:
            raise DataIntegrityError(details=[f"{value!r} is not a valid email address"])
        return value


class Category(TimestampMixin, Base):
    __tablename__ = "categories"

    name = Column(String(255), nullable=False, unique=True)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    emoji = Column(String(16), nullable=True)

    products = relationship("Product", back_populates="category")


class Product(TimestampMixin, Base):
    __tablename__ = "products"
    __table_args__ = (CheckConstraint("price > 0", name="ck_products_price_positive"),)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    condition = _enum_column(ProductCondition, "product_condition", default=ProductCondition.GOOD, nullable=False)
    size = Column(String(50), nullable=True)
    color = Column(String(50), nullable=True)
    material = Column(String(100), nullable=True)
    is_available = Column(Boolean, default=True, nullable=False)
    is_featured = Column(Boolean, default=False, nullable=False)
    view_count = Column(Integer, default=0, nullable=False)
    seller_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False, index=True)

    seller = relationship("User", back_populates="products")
    category = relationship("Category", back_populates="products")
    images = relationship(
        "ProductImage",
        back_populates="product",
        order_by=lambda: [ProductImage.is_primary.desc(), ProductImage.created_at],
    )

    @validates("price")
    def _check_price(self, key, value):
        if value is None or Decimal(str(value)) <= 0:
            raise DataIntegrityError(details=["Price must be a positive number"])
        return value


class ProductImage(TimestampMixin, Base):
    __tablename__ = "product_images"

    filename = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=False)
    mime_type = Column(String(100), nullable=False)
    size = Column(Integer, nullable=False)
    url = Column(String(500), nullable=False)
    is_primary = Column(Boolean, default=False, nullable=False)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False, index=True)

    product = relationship("Product", back_populates="images")


class Order(TimestampMixin, Base):
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("item_price > 0", name="ck_orders_item_price_positive"),
        CheckConstraint("platform_fee > 0", name="ck_orders_platform_fee_positive"),
        CheckConstraint("total_amount > 0", name="ck_orders_total_amount_positive"),
    )

    order_number = Column(String(32), nullable=False, unique=True)
    item_price = Column(Numeric(10, 2), nullable=False)
    platform_fee = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    status = _enum_column(OrderStatus, "order_status", default=OrderStatus.PENDING, nullable=False)
    payment_method = _enum_column(PaymentMethod, "payment_method", nullable=False)
    payment_intent_id = Column(String(255), nullable=True, unique=True)
    shipping_address = Column(Text, nullable=False)
    buyer_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    seller_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)

    buyer = relationship("User", foreign_keys=[buyer_id])
    seller = relationship("User", foreign_keys=[seller_id])
    product = relationship("Product")


class Message(TimestampMixin, Base):
    __tablename__ = "messages"

    content = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    sender_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    receiver_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=True)

    sender = relationship("User", foreign_keys=[sender_id])
    receiver = relationship("User", foreign_keys=[receiver_id])
    product = relationship("Product")

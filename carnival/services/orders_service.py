import logging
import secrets
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from carnival.core.errors import NotFoundError, PermissionDeniedError, ValidationFailed
from carnival.db.repository import Repository
from carnival.models.entities import Order, OrderStatus, Product, User
from carnival.models.schemas import PaymentConfirmIn, PaymentIntentIn

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# (current, requested) -> parties allowed to make the change
TRANSITIONS = {
    (OrderStatus.PENDING, OrderStatus.CANCELLED): {"buyer", "seller"},
    (OrderStatus.PAID, OrderStatus.SHIPPED): {"seller"},
    (OrderStatus.PAID, OrderStatus.REFUNDED): {"seller"},
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED): {"buyer"},
}


def calculate_fees(price, fee_percent) -> Tuple[Decimal, Decimal]:
    """Return ``(platform_fee, total_amount)`` for an item price, in cents."""
    item_price = Decimal(str(price)).quantize(CENT, rounding=ROUND_HALF_UP)
    fee = (item_price * Decimal(str(fee_percent)) / 100).quantize(CENT, rounding=ROUND_HALF_UP)
    fee = max(fee, CENT)
    return fee, item_price + fee


def generate_order_number(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"CM-{now:%Y%m%d}-{secrets.token_hex(4).upper()}"


def generate_payment_intent_id() -> str:
    return f"pi_{secrets.token_hex(12)}"


SOLD_STATUSES = (OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.DELIVERED)


def has_other_sale(db: Session, order: Order) -> bool:
    return Repository(db, Order).count(
        Order.product_id == order.product_id,
        Order.id != order.id,
        Order.status.in_(SOLD_STATUSES),
    ) > 0


def party_of(order: Order, user_id: str) -> Optional[str]:
    if order.buyer_id == user_id:
        return "buyer"
    if order.seller_id == user_id:
        return "seller"
    return None


def get_order(db: Session, order_id) -> Optional[Order]:
    return Repository(db, Order).get(order_id, options=(joinedload(Order.product),))


def get_order_for(db: Session, order_id, user_id: str) -> Order:
    order = get_order(db, order_id)
    # orders of other people are reported as missing
    if order is None or party_of(order, user_id) is None:
        raise NotFoundError("Order not found")
    return order


def list_orders(db: Session, user_id: str, role: Optional[str] = None):
    if role == "buyer":
        criteria = (Order.buyer_id == user_id,)
    elif role == "seller":
        criteria = (Order.seller_id == user_id,)
    else:
        criteria = ((Order.buyer_id == user_id) | (Order.seller_id == user_id),)
    return Repository(db, Order).find_all(
        *criteria, order_by=Order.created_at.desc(), options=(joinedload(Order.product),)
    )


def create_payment_intent(db: Session, buyer: User, payload: PaymentIntentIn, fee_percent) -> Order:
    product = Repository(db, Product).get(payload.product_id)
    if product is None:
        raise NotFoundError("Product not found")
    if product.seller_id == buyer.id:
        raise ValidationFailed("You cannot buy your own product")
    if not product.is_available:
        raise ValidationFailed("Product is no longer available")

    fee, total = calculate_fees(product.price, fee_percent)
    order = Repository(db, Order).create(
        order_number=generate_order_number(),
        item_price=product.price,
        platform_fee=fee,
        total_amount=total,
        status=OrderStatus.PENDING,
        payment_method=payload.payment_method,
        payment_intent_id=generate_payment_intent_id(),
        shipping_address=payload.shipping_address,
        buyer_id=buyer.id,
        seller_id=product.seller_id,
        product_id=product.id,
    )
    logger.info("Order %s created for product %s", order.order_number, product.id)
    return get_order(db, order.id)


def confirm_payment(db: Session, buyer: User, payload: PaymentConfirmIn) -> Order:
    orders = Repository(db, Order)
    order = orders.find_one(
        Order.payment_intent_id == payload.payment_intent_id,
        Order.buyer_id == buyer.id,
        options=(joinedload(Order.product),),
    )
    if order is None:
        raise NotFoundError("Payment intent not found")
    if order.status != OrderStatus.PENDING:
        raise ValidationFailed("Order is not awaiting payment")
    if not order.product.is_available:
        raise ValidationFailed("Product is no longer available")

    changes = {"status": OrderStatus.PAID}
    if payload.payment_method_type is not None:
        changes["payment_method"] = payload.payment_method_type
    # availability is checked and cleared in one statement
    claimed = Repository(db, Product).update_where(
        Product.id == order.product_id, Product.is_available.is_(True), is_available=False
    )
    if not claimed:
        db.rollback()
        raise ValidationFailed("Product is no longer available")
    order = orders.update(order, **changes)
    logger.info("Order %s paid", order.order_number)
    return order


def change_status(db: Session, order: Order, user_id: str, new_status: OrderStatus) -> Order:
    allowed = TRANSITIONS.get((order.status, new_status))
    if allowed is None:
        raise ValidationFailed(
            f"Cannot change order status from {order.status.value} to {new_status.value}"
        )
    if party_of(order, user_id) not in allowed:
        raise PermissionDeniedError("You are not allowed to make this status change")
    if new_status == OrderStatus.REFUNDED and not has_other_sale(db, order):
        order.product.is_available = True
    return Repository(db, Order).update(order, status=new_status)

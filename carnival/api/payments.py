from typing import Literal, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from carnival.api.deps import get_current_user, get_settings
from carnival.core.config import Settings
from carnival.db.session import get_db
from carnival.models.entities import User
from carnival.models.schemas import OrderOut, OrderStatusIn, PaymentConfirmIn, PaymentIntentIn, dump
from carnival.services import orders_service

router = APIRouter()


@router.post("/create-payment-intent", status_code=status.HTTP_201_CREATED)
def create_payment_intent(
    payload: PaymentIntentIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    config: Settings = Depends(get_settings),
):
    order = orders_service.create_payment_intent(db, user, payload, config.PLATFORM_FEE_PERCENT)
    return {
        "success": True,
        "paymentIntentId": order.payment_intent_id,
        "order": dump(OrderOut, order),
    }


@router.post("/confirm-payment")
def confirm_payment(payload: PaymentConfirmIn, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    order = orders_service.confirm_payment(db, user, payload)
    return {"success": True, "message": "Payment confirmed", "order": dump(OrderOut, order)}


@router.get("/orders")
def list_orders(
    role: Optional[Literal["buyer", "seller"]] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    orders = orders_service.list_orders(db, user.id, role)
    return {"success": True, "count": len(orders), "orders": [dump(OrderOut, o) for o in orders]}


@router.get("/orders/{order_id}")
def get_order(order_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    order = orders_service.get_order_for(db, order_id, user.id)
    return {"success": True, "order": dump(OrderOut, order)}


@router.put("/orders/{order_id}/status")
def update_order_status(
    order_id: str,
    payload: OrderStatusIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    order = orders_service.get_order_for(db, order_id, user.id)
    order = orders_service.change_status(db, order, user.id, payload.status)
    return {"success": True, "message": f"Order marked as {order.status.value}", "order": dump(OrderOut, order)}

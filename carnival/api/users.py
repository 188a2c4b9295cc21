import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from carnival.api.deps import get_current_user
from carnival.core.errors import NotFoundError, ValidationFailed
from carnival.core.security import hash_password, verify_password
from carnival.db.repository import Repository
from carnival.db.session import get_db
from carnival.models.entities import CarnivalGroup, Message, Order, Product, User
from carnival.models.schemas import (
    PasswordChange,
    ProductOut,
    ProfileUpdate,
    PublicUserOut,
    UserOut,
    dump,
)
from carnival.services.accounts_service import blank_to_none, load_user
from carnival.services.catalog_service import product_options

logger = logging.getLogger(__name__)

router = APIRouter()

RECENT_PRODUCTS = 5


@router.get("/profile")
def get_profile(user: User = Depends(get_current_user)):
    return {"success": True, "user": dump(UserOut, user)}


@router.put("/profile")
def update_profile(payload: ProfileUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    changes = payload.model_dump(exclude_unset=True)
    for key in ("first_name", "last_name", "carnival_group_id"):
        if key in changes and changes[key] is None:
            del changes[key]
    for key in ("phone", "address", "city", "postal_code"):
        if key in changes:
            changes[key] = blank_to_none(changes[key])
    if "carnival_group_id" in changes:
        group = Repository(db, CarnivalGroup).get(changes["carnival_group_id"])
        if group is None:
            raise ValidationFailed("Please select a valid carnival group")
        changes["carnival_group_id"] = group.id

    Repository(db, User).update(user, **changes)
    logger.info("Profile updated for user %s", user.id)
    return {
        "success": True,
        "message": "Profile updated successfully",
        "user": dump(UserOut, load_user(db, user.id)),
    }


@router.put("/change-password")
def change_password(payload: PasswordChange, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if not verify_password(payload.current_password, user.password):
        raise ValidationFailed("Current password is incorrect")
    Repository(db, User).update(user, password=hash_password(payload.new_password))
    logger.info("Password changed for user %s", user.id)
    return {"success": True, "message": "Password updated successfully"}


@router.get("/dashboard")
def dashboard(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    products = Repository(db, Product)
    recent = products.find_all(
        Product.seller_id == user.id,
        order_by=Product.created_at.desc(),
        options=product_options(),
        limit=RECENT_PRODUCTS,
    )
    return {
        "success": True,
        "stats": {
            "totalProducts": products.count(Product.seller_id == user.id),
            "activeProducts": products.count(Product.seller_id == user.id, Product.is_available.is_(True)),
            "purchases": Repository(db, Order).count(Order.buyer_id == user.id),
            "sales": Repository(db, Order).count(Order.seller_id == user.id),
            "unreadMessages": Repository(db, Message).count(
                Message.receiver_id == user.id, Message.is_read.is_(False)
            ),
        },
        "recentProducts": [dump(ProductOut, p) for p in recent],
    }


@router.get("/{user_id}/public")
def public_profile(user_id: str, db: Session = Depends(get_db)):
    user = load_user(db, user_id)
    if user is None or not user.is_active:
        raise NotFoundError("User not found")
    products = Repository(db, Product).find_all(
        Product.seller_id == user.id,
        Product.is_available.is_(True),
        order_by=Product.created_at.desc(),
        options=product_options(),
    )
    profile = dump(PublicUserOut, user)
    profile["products"] = [dump(ProductOut, p) for p in products]
    return {"success": True, "user": profile}

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.orm import Session

from carnival.api.deps import get_current_user, get_settings
from carnival.core.config import Settings
from carnival.core.errors import NotFoundError, PermissionDeniedError, ValidationFailed
from carnival.db.repository import Repository
from carnival.db.session import get_db
from carnival.models.entities import Category, Product, ProductCondition, User
from carnival.models.schemas import ImageOut, ProductCreate, ProductOut, ProductUpdate, dump
from carnival.services.accounts_service import blank_to_none
from carnival.services.catalog_service import load_product, product_options, resolve_category, save_images

logger = logging.getLogger(__name__)

router = APIRouter()

REQUIRED_FIELDS = ("title", "description", "price", "condition", "category_id", "is_available")
OPTIONAL_TEXT_FIELDS = ("size", "color", "material")


def _owned_product(db: Session, product_id: str, user: User, action: str) -> Product:
    product = load_product(db, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    if product.seller_id != user.id:
        raise PermissionDeniedError(f"Not authorized to {action} this product")
    return product


@router.get("")
def list_products(
    category: Optional[str] = None,
    condition: Optional[ProductCondition] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    criteria = [Product.is_available.is_(True)]
    if category:
        criteria.append(Product.category.has(Category.slug == category))
    if condition:
        criteria.append(Product.condition == condition)
    if search:
        criteria.append(Product.title.ilike(f"%{search}%"))

    products = Repository(db, Product).find_all(
        *criteria, order_by=Product.created_at.desc(), options=product_options()
    )
    logger.debug("Found %d products", len(products))
    return {
        "success": True,
        "products": [dump(ProductOut, p) for p in products],
        "count": len(products),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_product(payload: ProductCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    logger.info("Creating product %r for user %s", payload.title, user.id)
    category = resolve_category(db, payload.category_id)
    product = Repository(db, Product).create(
        title=payload.title,
        description=payload.description,
        price=payload.price,
        condition=payload.condition,
        category_id=category.id,
        size=blank_to_none(payload.size),
        color=blank_to_none(payload.color),
        material=blank_to_none(payload.material),
        seller_id=user.id,
        is_available=True,
    )
    return {
        "success": True,
        "message": "Product created successfully",
        "product": dump(ProductOut, load_product(db, product.id)),
    }


@router.get("/user/{user_id}")
def list_user_products(user_id: str, db: Session = Depends(get_db)):
    products = Repository(db, Product).find_all(
        Product.seller_id == user_id,
        Product.is_available.is_(True),
        order_by=Product.created_at.desc(),
        options=product_options(),
    )
    return {
        "success": True,
        "products": [dump(ProductOut, p) for p in products],
        "count": len(products),
    }


@router.get("/{product_id}")
def get_product(product_id: str, db: Session = Depends(get_db)):
    product = load_product(db, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    Repository(db, Product).update(product, view_count=Product.view_count + 1)
    return {"success": True, "product": dump(ProductOut, product)}


@router.put("/{product_id}")
def update_product(
    product_id: str,
    payload: ProductUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    product = _owned_product(db, product_id, user, "update")

    changes = payload.model_dump(exclude_unset=True)
    for key in REQUIRED_FIELDS:
        if key in changes and changes[key] is None:
            del changes[key]
    for key in OPTIONAL_TEXT_FIELDS:
        if key in changes:
            changes[key] = blank_to_none(changes[key])
    if "category_id" in changes:
        category = Repository(db, Category).get(changes["category_id"])
        if category is None:
            raise ValidationFailed("Please select a valid category")
        changes["category_id"] = category.id

    Repository(db, Product).update(product, **changes)
    return {
        "success": True,
        "message": "Product updated successfully",
        "product": dump(ProductOut, load_product(db, product.id)),
    }


@router.delete("/{product_id}")
def delete_product(product_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    product = _owned_product(db, product_id, user, "delete")
    Repository(db, Product).update(product, is_available=False)
    return {"success": True, "message": "Product removed successfully"}


@router.post("/{product_id}/images", status_code=status.HTTP_201_CREATED)
def upload_images(
    product_id: str,
    images: List[UploadFile] = File(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    config: Settings = Depends(get_settings),
):
    product = _owned_product(db, product_id, user, "update")
    saved = save_images(db, product, images, config.UPLOAD_DIR, config.MAX_UPLOAD_BYTES)
    return {"success": True, "images": [dump(ImageOut, image) for image in saved]}

import logging
import uuid
from pathlib import Path
from typing import List, Optional

from fastapi import UploadFile
from slugify import slugify
from sqlalchemy.orm import Session, joinedload, selectinload

from carnival.core.errors import ValidationFailed
from carnival.db.repository import Repository
from carnival.models.entities import Category, Product, ProductImage, User

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def product_options():
    return (
        joinedload(Product.seller).joinedload(User.carnival_group),
        joinedload(Product.category),
        selectinload(Product.images),
    )


def load_product(db: Session, product_id) -> Optional[Product]:
    return Repository(db, Product).get(product_id, options=product_options())


def resolve_category(db: Session, category_id) -> Category:
    """Known category, else the first one by name; an empty catalogue is an input error."""
    categories = Repository(db, Category)
    category = categories.get(category_id)
    if category is not None:
        return category
    category = categories.find_one(order_by=Category.name.asc())
    if category is None:
        raise ValidationFailed("Please select a valid category")
    logger.info("Unknown category %s, using default category %s", category_id, category.name)
    return category


def save_images(db: Session, product: Product, uploads: List[UploadFile], upload_dir: str, max_bytes: int) -> List[ProductImage]:
    """Store uploaded images on disk and attach them to ``product``.

    Every file is checked before anything is written. The first image of a
    product without a primary image becomes primary.
    """
    checked = []
    for upload in uploads:
        extension = ALLOWED_IMAGE_TYPES.get(upload.content_type)
        if extension is None:
            raise ValidationFailed("Only JPEG, PNG, WebP and GIF images are allowed")
        data = upload.file.read(max_bytes + 1)
        if len(data) > max_bytes:
            raise ValidationFailed(f"Image {upload.filename} exceeds the {max_bytes // (1024 * 1024)}MB limit")
        checked.append((upload, extension, data))

    target = Path(upload_dir)
    target.mkdir(parents=True, exist_ok=True)
    needs_primary = not any(image.is_primary for image in product.images)

    images = Repository(db, ProductImage)
    saved = []
    for upload, extension, data in checked:
        stem = slugify(Path(upload.filename or "image").stem) or "image"
        filename = f"{uuid.uuid4().hex}-{stem}{extension}"
        (target / filename).write_bytes(data)
        saved.append(
            images.create(
                filename=filename,
                original_name=upload.filename or filename,
                mime_type=upload.content_type,
                size=len(data),
                url=f"/uploads/{filename}",
                is_primary=needs_primary and not saved,
                product_id=product.id,
            )
        )
    logger.info("Stored %d image(s) for product %s", len(saved), product.id)
    return saved

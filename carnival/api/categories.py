from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from carnival.db.repository import Repository
from carnival.db.session import get_db
from carnival.models.entities import Category
from carnival.models.schemas import CategoryOut, dump

router = APIRouter()


@router.get("")
def list_categories(db: Session = Depends(get_db)):
    categories = Repository(db, Category).find_all(order_by=Category.name.asc())
    return {"success": True, "categories": [dump(CategoryOut, c) for c in categories]}

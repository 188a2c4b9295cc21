import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, selectinload

from carnival.core.errors import NotFoundError
from carnival.db.repository import Repository
from carnival.db.session import get_db
from carnival.models.entities import CarnivalGroup
from carnival.models.schemas import GroupDetail, GroupSummary, MemberOut, dump

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def list_groups(db: Session = Depends(get_db)):
    groups = Repository(db, CarnivalGroup).find_all(order_by=CarnivalGroup.name.asc())
    logger.debug("Found %d carnival groups", len(groups))
    return {
        "success": True,
        "count": len(groups),
        "groups": [dump(GroupSummary, g) for g in groups],
    }


@router.get("/{group_id}")
def get_group(group_id: str, db: Session = Depends(get_db)):
    group = Repository(db, CarnivalGroup).get(group_id, options=(selectinload(CarnivalGroup.users),))
    if group is None:
        raise NotFoundError("Carnival group not found")
    detail = dump(GroupDetail, group)
    detail["users"] = [dump(MemberOut, u) for u in group.users if u.is_active]
    return {"success": True, "group": detail}

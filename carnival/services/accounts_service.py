import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from carnival.core.errors import AuthenticationError, ConflictError
from carnival.core.security import dummy_verify, hash_password, verify_password
from carnival.db.repository import Repository
from carnival.models.entities import CarnivalGroup, User
from carnival.models.schemas import RegisterIn

logger = logging.getLogger(__name__)

DEFAULT_GROUP_NAME = "Default Group"
DEFAULT_GROUP = {"city": "Brussels", "country": "Belgium", "verified": True}

INVALID_CREDENTIALS = "Invalid email or password"
DUPLICATE_EMAIL = "User already exists with this email"


def blank_to_none(value):
    return value or None


def resolve_carnival_group(db: Session, group_id: Optional[str]) -> CarnivalGroup:
    """Pick the group a new account joins.

    A known ``group_id`` wins. Otherwise the oldest existing group is used,
    and on an empty database the default group is created.
    """
    groups = Repository(db, CarnivalGroup)
    if group_id:
        group = groups.get(group_id)
        if group is not None:
            return group
        logger.info("Invalid carnival group id %s provided, using default", group_id)

    group = groups.find_one(order_by=CarnivalGroup.created_at.asc())
    if group is not None:
        logger.info("Using default carnival group: %s", group.name)
        return group

    logger.info("No carnival groups found, creating %r", DEFAULT_GROUP_NAME)
    group, _ = groups.find_or_create(name=DEFAULT_GROUP_NAME, defaults=DEFAULT_GROUP)
    return group


def load_user(db: Session, user_id: str) -> Optional[User]:
    return Repository(db, User).get(user_id, options=(joinedload(User.carnival_group),))


def register_user(db: Session, payload: RegisterIn) -> User:
    users = Repository(db, User)
    if users.find_by(email=payload.email) is not None:
        raise ConflictError(DUPLICATE_EMAIL)

    group = resolve_carnival_group(db, payload.carnival_group_id)
    try:
        user = users.create(
            email=payload.email,
            password=hash_password(payload.password),
            first_name=payload.first_name,
            last_name=payload.last_name,
            phone=blank_to_none(payload.phone),
            address=blank_to_none(payload.address),
            city=blank_to_none(payload.city),
            postal_code=blank_to_none(payload.postal_code),
            carnival_group_id=group.id,
        )
    except ConflictError:
        # lost a race against a concurrent registration with the same email
        if users.find_by(email=payload.email) is not None:
            raise ConflictError(DUPLICATE_EMAIL)
        raise
    logger.info("User created: %s", user.id)
    return load_user(db, user.id)


def authenticate(db: Session, email: str, password: str) -> User:
    user = Repository(db, User).find_one(User.email == email, options=(joinedload(User.carnival_group),))
    if user is None:
        dummy_verify()
        raise AuthenticationError(INVALID_CREDENTIALS)
    if not verify_password(password, user.password):
        raise AuthenticationError(INVALID_CREDENTIALS)
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    return Repository(db, User).update(user, last_login_at=datetime.now(timezone.utc))

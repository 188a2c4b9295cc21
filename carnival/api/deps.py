from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from carnival.core.config import Settings
from carnival.core.errors import AuthenticationError
from carnival.core.security import decode_token
from carnival.db.session import get_db
from carnival.models.entities import User
from carnival.services.accounts_service import load_user

oauth2 = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_current_user(
    token: Optional[str] = Depends(oauth2),
    db: Session = Depends(get_db),
    config: Settings = Depends(get_settings),
) -> User:
    if not token:
        raise AuthenticationError("No token provided")
    user_id = decode_token(token, config)
    user = load_user(db, user_id)
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")
    return user

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from carnival.api.deps import get_current_user, get_settings
from carnival.core.config import Settings
from carnival.core.security import create_token
from carnival.db.session import get_db
from carnival.models.entities import User
from carnival.models.schemas import LoginIn, RegisterIn, UserOut, dump
from carnival.services import accounts_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def auth_index():
    return {
        "message": "Auth routes working",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "endpoints": {
            "register": "POST /api/auth/register",
            "login": "POST /api/auth/login",
            "me": "GET /api/auth/me",
            "logout": "POST /api/auth/logout",
        },
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterIn, db: Session = Depends(get_db), config: Settings = Depends(get_settings)):
    logger.info("Registration attempt: %s", payload.email)
    user = accounts_service.register_user(db, payload)
    return {
        "message": "User registered successfully",
        "token": create_token(user.id, config),
        "user": dump(UserOut, user),
        "success": True,
    }


@router.post("/login")
def login(payload: LoginIn, db: Session = Depends(get_db), config: Settings = Depends(get_settings)):
    logger.info("Login attempt: %s", payload.email)
    user = accounts_service.authenticate(db, payload.email, payload.password)
    return {
        "message": "Login successful",
        "token": create_token(user.id, config),
        "user": dump(UserOut, user),
        "success": True,
    }


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return {"user": dump(UserOut, user)}


@router.post("/logout")
def logout():
    # tokens are stateless; the client discards its copy
    return {"success": True, "message": "Logged out successfully"}

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from carnival.core.config import Settings, settings
from carnival.core.errors import InvalidTokenError, TokenExpiredError

pwd_ctx = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)


def hash_password(password: str) -> str:
    return pwd_ctx.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_ctx.verify(plain, hashed)


def dummy_verify() -> None:
    """Burn the same time as a real check so unknown emails are not detectable."""
    pwd_ctx.dummy_verify()


def create_token(user_id: str, config: Optional[Settings] = None, expires_delta: Optional[timedelta] = None) -> str:
    config = config or settings
    now = datetime.now(timezone.utc)
    expires = now + (expires_delta if expires_delta is not None else timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": str(user_id), "userId": str(user_id), "iat": now, "exp": expires}
    return jwt.encode(to_encode, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_token(token: str, config: Optional[Settings] = None) -> str:
    """Return the user id carried by ``token``.

    Raises TokenExpiredError once the validity window has passed and
    InvalidTokenError for a bad signature or a malformed token.
    """
    config = config or settings
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError:
        raise InvalidTokenError()
    user_id = payload.get("sub") or payload.get("userId")
    if not user_id:
        raise InvalidTokenError()
    return user_id

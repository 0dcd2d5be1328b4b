from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import logging
from jose import JWTError, jwt
from passlib.context import CryptContext

from core.config import AppSettings, settings
from models.user import User


password_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
logger = logging.getLogger(__name__)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    ok = password_context.verify(plain_password, hashed_password)
    # Debug log only in development
    if settings.environment == "development":
        logger.info(
            "auth.password_verify",
            extra={
                "plain_len": len(plain_password or ""),
                "result": ok,
            },
        )
    return ok


def get_password_hash(password: str) -> str:
    return password_context.hash(password)


def create_access_token(subject: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = subject.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return encoded_jwt


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        logger.warning("auth.jwt_rejected")
        return None


def is_admin_identity(user: Optional[User]) -> bool:
    """Only the stored flag grants admin; it is written by scripts/seed_admin.py, never by sign-up."""
    return bool(user and user.is_admin)


def is_reserved_identity(username: str, email: Optional[str], config: AppSettings = settings) -> bool:
    """The configured admin username and email cannot be claimed through registration."""
    if config.admin_username and username.strip().lower() == config.admin_username.lower():
        return True
    if config.admin_email and email and email.strip().lower() == config.admin_email.lower():
        return True
    return False

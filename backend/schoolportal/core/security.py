from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt
from passlib.context import CryptContext

from schoolportal.core.settings import settings


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class MissingSigningKey(RuntimeError):
    """Raised when JWT_SECRET is not configured."""


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def signing_key() -> str:
    # No built-in fallback: an unset secret must never sign or accept tokens.
    if not settings.jwt_secret:
        raise MissingSigningKey("JWT_SECRET must be set")
    return settings.jwt_secret


def _expiry_delta(expires_delta: Optional[timedelta]) -> timedelta:
    if expires_delta is not None:
        return expires_delta
    minutes = settings.access_token_expire_minutes
    if minutes <= 0:
        minutes = 60
    return timedelta(minutes=minutes)


def encode_token(claims: Dict[str, Any]) -> str:
    return jwt.encode(claims, signing_key(), algorithm=settings.algorithm)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + _expiry_delta(expires_delta)
    to_encode.setdefault("iat", now)
    # Unique per login so two sessions opened in the same second get distinct tokens.
    to_encode.setdefault("jti", secrets.token_hex(16))
    to_encode.update({"exp": expire})
    return encode_token(to_encode)


def decode_token(token: str) -> Dict[str, Any]:
    return jwt.decode(token, signing_key(), algorithms=[settings.algorithm])


def hash_token(token: str) -> str:
    """Digest stored in place of the raw bearer token."""
    return hashlib.sha256(token.encode()).hexdigest()

# app/core/security.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
import secrets
from hashlib import sha256

from jose import jwt, JWTError
from passlib.context import CryptContext

from app.core.config import Settings

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


# -------------------------
# Password hashing
# -------------------------
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


# -------------------------
# JWT helpers
# -------------------------
def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(settings: Settings, *, user_id: int, email: str, name: str) -> str:
    """
    Session token carried in the http-only cookie.
    sub = user's id (as string, per JWT), plus email/name for display.
    """
    now = _now_utc()
    exp = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    payload = {
        "sub": str(user_id),
        "email": email,
        "name": name,
        "purpose": "access",
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }

    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(settings: Settings, token: str) -> dict[str, Any]:
    # Let callers decide how to handle JWTError
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])


def verify_token_purpose(settings: Settings, token: str, expected_purpose: str) -> dict[str, Any]:
    try:
        payload = decode_token(settings, token)
    except JWTError:
        raise ValueError("Invalid or expired token")

    if payload.get("purpose") != expected_purpose:
        raise ValueError("Invalid token purpose")

    return payload


# -------------------------
# Opaque token helpers
# -------------------------
def generate_opaque_token() -> str:
    """
    Cryptographically secure token handed to the user exactly once.
    Backend stores ONLY a hash.
    """
    return secrets.token_hex(32)


def hash_opaque_token(token: str) -> str:
    """
    Hash an opaque token for DB storage (never store the raw token).
    """
    return sha256(token.encode("utf-8")).hexdigest()

# app/services/accounts.py
"""
Account registration and credential checks.

Routes translate the exceptions below into HTTP status codes; nothing here
knows about FastAPI.
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.security import hash_password, verify_password
from app.models.user import User
from app.services.email_verification import issue_email_verification_token
from app.services.notifications import send_verification_email

logger = logging.getLogger(__name__)


class AccountError(Exception):
    """Base class for account/credential failures."""


class AccountExistsError(AccountError):
    pass


class AccountNotFoundError(AccountError):
    pass


class BadCredentialsError(AccountError):
    pass


class AccountNotVerifiedError(AccountError):
    pass


class AccountAlreadyVerifiedError(AccountError):
    pass


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Look up a user by (case-folded) email address."""
    return db.query(User).filter(User.email == email.strip().lower()).first()


def _send_new_token(db: Session, settings: Settings, user: User) -> None:
    token = issue_email_verification_token(db, user, ttl_hours=settings.EMAIL_VERIFY_TOKEN_EXPIRE_HOURS)
    send_verification_email(settings, user.email, token)


def register_user(db: Session, settings: Settings, *, name: str, email: str, password: str) -> User:
    """
    Creates an unverified user and emails a verification link.
    The user, the token and the email go out together or not at all.
    """
    email = email.strip().lower()
    if get_user_by_email(db, email):
        raise AccountExistsError(email)

    user = User(
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
        verified=False,
    )
    try:
        db.add(user)
        db.flush()
        _send_new_token(db, settings, user)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        # Lost a race with a concurrent registration for the same email.
        raise AccountExistsError(email) from e
    except Exception:
        db.rollback()
        raise

    db.refresh(user)
    logger.info("Registered user_id=%s", user.id)
    return user


def authenticate(db: Session, *, email: str, password: str) -> User:
    user = get_user_by_email(db, email)
    if not user:
        raise AccountNotFoundError(email)
    if not verify_password(password, user.password_hash):
        raise BadCredentialsError(email)
    if not user.verified:
        raise AccountNotVerifiedError(email)
    return user


def resend_verification(db: Session, settings: Settings, *, email: str) -> None:
    user = get_user_by_email(db, email)
    if not user:
        raise AccountNotFoundError(email)
    if user.verified:
        raise AccountAlreadyVerifiedError(email)

    try:
        _send_new_token(db, settings, user)
        db.commit()
    except Exception:
        db.rollback()
        raise

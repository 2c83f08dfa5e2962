from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from app.core.security import generate_opaque_token, hash_opaque_token
from app.models.user import User
from app.models.verification_token import VerificationToken

logger = logging.getLogger(__name__)

DEFAULT_TTL_HOURS = 24


class VerificationTokenError(ValueError):
    """Base for every reason a verification token can be rejected."""


class InvalidToken(VerificationTokenError):
    def __init__(self) -> None:
        super().__init__("Token inválido.")


class TokenAlreadyUsed(VerificationTokenError):
    def __init__(self) -> None:
        super().__init__("Token ya usado.")


class TokenExpired(VerificationTokenError):
    def __init__(self) -> None:
        super().__init__("Token expirado.")


def _as_utc(dt: datetime) -> datetime:
    # SQLite round-trips tz-aware datetimes as naive.
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def issue_email_verification_token(db: Session, user: User, ttl_hours: int = DEFAULT_TTL_HOURS) -> str:
    """
    Creates a new verification token for the given user, stores only its hash,
    and returns the raw token string. Caller owns the transaction.
    """
    token = generate_opaque_token()

    db.add(
        VerificationToken(
            user_id=user.id,
            token_hash=hash_opaque_token(token),
            expires_at=datetime.now(timezone.utc) + timedelta(hours=ttl_hours),
        )
    )
    db.flush()
    return token


def consume_email_verification_token(db: Session, token: str) -> int:
    """
    Marks the owning user verified, marks this token consumed and deletes the
    user's other tokens, all in one transaction. Returns the user id.

    Raises InvalidToken, TokenAlreadyUsed or TokenExpired.
    """
    hashed = hash_opaque_token(token)
    record = (
        db.query(VerificationToken)
        .filter(VerificationToken.token_hash == hashed)
        .first()
    )

    if not record:
        raise InvalidToken()
    if record.consumed_at is not None:
        raise TokenAlreadyUsed()

    now = datetime.now(timezone.utc)
    if _as_utc(record.expires_at) < now:
        raise TokenExpired()

    user_id = record.user_id
    try:
        db.query(User).filter(User.id == user_id).update({User.verified: True}, synchronize_session=False)
        record.consumed_at = now
        (
            db.query(VerificationToken)
            .filter(VerificationToken.user_id == user_id, VerificationToken.token_hash != hashed)
            .delete(synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.expire_all()
    logger.info("Email verified for user_id=%s", user_id)
    return user_id

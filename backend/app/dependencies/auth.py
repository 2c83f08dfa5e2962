# app/dependencies/auth.py
from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.security import verify_token_purpose
from app.core.database import get_db
from app.models.user import User
from app.services.session import read_session_cookie


def _unauthorized(detail: str = "No autenticado.") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
    )


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    """
    Validates:
      - session cookie present
      - token signature + exp + purpose
      - user still exists
    Returns:
      - User SQLAlchemy model
    """
    token = read_session_cookie(request, settings)
    if not token:
        raise _unauthorized()

    try:
        payload = verify_token_purpose(settings, token, expected_purpose="access")
    except ValueError:
        raise _unauthorized("Sesión inválida o expirada.")

    try:
        user_id = int(payload.get("sub") or "")
    except (TypeError, ValueError):
        raise _unauthorized("Sesión inválida o expirada.")

    user = db.get(User, user_id)
    if not user:
        raise _unauthorized()

    return user

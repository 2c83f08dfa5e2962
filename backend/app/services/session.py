from __future__ import annotations

from fastapi import Request, Response

from app.core.config import Settings
from app.core.security import create_access_token
from app.models.user import User


# -----------------------------
# Session cookie settings
# -----------------------------
def cookie_max_age_seconds(settings: Settings) -> int:
    return int(settings.SESSION_COOKIE_MAX_AGE_DAYS) * 24 * 3600


def cookie_name(settings: Settings) -> str:
    return str(settings.SESSION_COOKIE_NAME or "").strip() or "access_token"


def cookie_path() -> str:
    return "/"


def cookie_secure(settings: Settings) -> bool:
    # Prod => HTTPS => Secure cookies. Dev http://localhost => must be False.
    return settings.is_prod


def cookie_samesite(settings: Settings) -> str:
    """
    "lax" for same-site setups
    "none" ONLY if cross-site cookies are truly needed (requires HTTPS + Secure=True)
    """
    v = str(settings.SESSION_COOKIE_SAMESITE or "lax").lower().strip()
    if v not in {"lax", "strict", "none"}:
        return "lax"
    return v


# -----------------------------
# Cookie helpers
# -----------------------------
def start_session(resp: Response, settings: Settings, user: User) -> str:
    """
    Signs a session token for the user and sets it as an http-only cookie.
    """
    token = create_access_token(settings, user_id=user.id, email=user.email, name=user.name)
    resp.set_cookie(
        key=cookie_name(settings),
        value=token,
        httponly=True,
        secure=cookie_secure(settings),
        samesite=cookie_samesite(settings),
        max_age=cookie_max_age_seconds(settings),
        path=cookie_path(),
    )
    return token


def clear_session_cookie(resp: Response, settings: Settings) -> None:
    resp.delete_cookie(
        key=cookie_name(settings),
        path=cookie_path(),
    )


def read_session_cookie(req: Request, settings: Settings) -> str | None:
    val = req.cookies.get(cookie_name(settings))
    if not val:
        return None
    val = val.strip()
    return val or None

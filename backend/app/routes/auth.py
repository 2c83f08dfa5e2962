# app/routes/auth.py
from __future__ import annotations

import logging
from html import escape as html_escape

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.dependencies.auth import get_current_user
from app.models.user import User
from app.schemas.auth import (
    RegisterIn,
    LoginIn,
    LoginOut,
    MeOut,
    MessageOut,
    OkOut,
    ResendVerifyIn,
)
from app.services.accounts import (
    AccountAlreadyVerifiedError,
    AccountExistsError,
    AccountNotFoundError,
    AccountNotVerifiedError,
    BadCredentialsError,
    authenticate,
    register_user,
    resend_verification as resend_verification_email,
)
from app.services.email import EmailDeliveryError, EmailNotConfiguredError
from app.services.email_verification import VerificationTokenError, consume_email_verification_token
from app.services.session import clear_session_cookie, start_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

EMAIL_FAILED = "No se pudo enviar el correo de verificación. Inténtalo más tarde."


# -----------------------------
# Routes
# -----------------------------
@router.post("/register", response_model=MessageOut, status_code=201)
def register(
    payload: RegisterIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="El nombre es obligatorio.")

    try:
        register_user(db, settings, name=name, email=payload.email, password=payload.password)
    except AccountExistsError:
        raise HTTPException(status_code=409, detail="Ya existe una cuenta con ese correo.")
    except (EmailNotConfiguredError, EmailDeliveryError):
        logger.exception("Verification email failed during registration")
        raise HTTPException(status_code=500, detail=EMAIL_FAILED)

    return {"message": "Usuario creado. Revisa tu email para verificar."}


@router.post("/login", response_model=LoginOut)
def login(
    payload: LoginIn,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        user = authenticate(db, email=payload.email, password=payload.password)
    except AccountNotFoundError:
        raise HTTPException(status_code=404, detail="Usuario no encontrado.")
    except BadCredentialsError:
        raise HTTPException(status_code=401, detail="Credenciales incorrectas.")
    except AccountNotVerifiedError:
        raise HTTPException(
            status_code=403,
            detail="Cuenta no verificada. Revisa tu correo o reenvía el enlace.",
        )

    start_session(response, settings, user)
    return {"user": user}


@router.get("/verify", response_class=HTMLResponse)
def verify_email(
    token: str = "",
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    token = token.strip()
    if not token:
        return HTMLResponse("Token faltante.", status_code=400)

    try:
        consume_email_verification_token(db, token)
    except VerificationTokenError as e:
        return HTMLResponse(f"No se pudo verificar: {html_escape(str(e))}", status_code=400)

    url = html_escape(f"{settings.APP_URL}/?verified=1", quote=True)
    return HTMLResponse(
        f'<meta http-equiv="refresh" content="0;url={url}" /><p>Cuenta verificada. Redirigiendo…</p>'
    )


@router.post("/resend", response_model=MessageOut)
def resend_verification(
    payload: ResendVerifyIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        resend_verification_email(db, settings, email=payload.email)
    except AccountNotFoundError:
        raise HTTPException(status_code=404, detail="Usuario no encontrado.")
    except AccountAlreadyVerifiedError:
        raise HTTPException(status_code=400, detail="La cuenta ya está verificada.")
    except (EmailNotConfiguredError, EmailDeliveryError):
        logger.exception("Verification email failed during resend")
        raise HTTPException(status_code=500, detail=EMAIL_FAILED)

    return {"message": "Se envió un nuevo enlace de verificación."}


@router.get("/me", response_model=MeOut)
def me(user: User = Depends(get_current_user)):
    return {"user": user}


@router.post("/logout", response_model=OkOut)
def logout(response: Response, settings: Settings = Depends(get_settings)):
    clear_session_cookie(response, settings)
    return {"ok": True}

from __future__ import annotations

import logging
from html import escape as html_escape
from urllib.parse import quote

from app.core.config import Settings
from app.services.email import send_email

logger = logging.getLogger(__name__)


def build_verification_link(settings: Settings, token: str) -> str:
    return f"{settings.API_URL}/auth/verify?token={quote(token, safe='')}"


def send_verification_email(settings: Settings, to_email: str, token: str) -> str | None:
    """
    Emails the confirmation link. Raises EmailNotConfiguredError/EmailDeliveryError.
    """
    url = build_verification_link(settings, token)
    hours = settings.EMAIL_VERIFY_TOKEN_EXPIRE_HOURS
    subject = "Verifica tu correo"

    body = "\n".join(
        [
            "Confirma tu correo",
            "",
            "Gracias por registrarte. Abre este enlace para activar tu cuenta:",
            url,
            "",
            f"Caduca en {hours} horas.",
        ]
    )

    safe_url = html_escape(url, quote=True)
    html = f"""
    <div style="font-family:system-ui,Segoe UI,Arial">
      <h2>Confirma tu correo</h2>
      <p>Gracias por registrarte. Haz clic para activar tu cuenta:</p>
      <p><a href="{safe_url}" style="background:#2563eb;color:#fff;padding:10px 14px;border-radius:8px;text-decoration:none">Verificar mi correo</a></p>
      <p>Si no ves el botón, copia este enlace:<br><code>{safe_url}</code></p>
      <p>Caduca en {hours} horas.</p>
    </div>
    """.strip()

    msg_id = send_email(settings, to_email=to_email, subject=subject, body=body, html=html)
    # Never log the token/link itself.
    logger.info("Verification email queued to=%s provider=%s msg_id=%s", to_email, settings.EMAIL_PROVIDER, msg_id)
    return msg_id

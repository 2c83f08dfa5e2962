from __future__ import annotations

import logging

import resend
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate

from app.core.config import Settings

logger = logging.getLogger(__name__)


class EmailNotConfiguredError(RuntimeError):
    pass


class EmailDeliveryError(RuntimeError):
    """
    Raised when a provider is configured but delivery fails.
    Message is safe to log; routes surface a generic message instead.
    """


def _normalize_provider(raw: str | None) -> str:
    """
    Supported providers:
    - smtp (default when unset)
    - resend
    """
    provider = (raw or "").strip().lower()
    if not provider:
        return "smtp"
    if provider in {"smtp", "resend"}:
        return provider
    raise EmailNotConfiguredError(
        f"Unsupported EMAIL_PROVIDER={provider!r}. Supported: smtp (default), resend."
    )


def _require_smtp_config(settings: Settings) -> None:
    if not settings.SMTP_HOST:
        raise EmailNotConfiguredError("SMTP_HOST is not set")
    if not settings.MAIL_FROM:
        raise EmailNotConfiguredError("MAIL_FROM is not set")


def _require_resend_config(settings: Settings) -> str:
    api_key = (settings.RESEND_API_KEY or "").strip()
    if not api_key:
        raise EmailNotConfiguredError("RESEND_API_KEY is not set")
    if not settings.MAIL_FROM:
        raise EmailNotConfiguredError("MAIL_FROM is not set")
    return api_key


def _send_email_resend(settings: Settings, to_email: str, subject: str, body: str, html: str | None) -> str | None:
    api_key = _require_resend_config(settings)

    payload = {
        "from": settings.MAIL_FROM,
        "to": [to_email],
        "subject": subject,
        "text": body,
    }
    if html:
        payload["html"] = html

    try:
        resend.api_key = api_key
        res = resend.Emails.send(payload)  # type: ignore[attr-defined]
    except Exception as e:  # noqa: BLE001
        raise EmailDeliveryError(f"Resend send failed: {e}") from e

    msg_id: str | None = None
    if isinstance(res, dict):
        if res.get("error"):
            raise EmailDeliveryError(f"Resend API error: {res.get('error')}")
        v = res.get("id")
        if isinstance(v, str) and v.strip():
            msg_id = v.strip()

    logger.info("Resend email sent: to=%s msg_id=%s", to_email, msg_id)
    return msg_id


def _send_email_smtp(settings: Settings, to_email: str, subject: str, body: str, html: str | None) -> None:
    """
    SMTP transport. Port 465 means implicit TLS; anything else upgrades with STARTTLS.
    """
    _require_smtp_config(settings)

    msg = MIMEMultipart("alternative")
    msg["From"] = settings.MAIL_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg["Date"] = formatdate(localtime=True)
    msg.attach(MIMEText(body, "plain", "utf-8"))
    if html:
        msg.attach(MIMEText(html, "html", "utf-8"))

    try:
        if settings.SMTP_PORT == 465:
            server: smtplib.SMTP = smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10)
        else:
            server = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10)
    except (OSError, smtplib.SMTPException) as e:
        logger.exception("SMTP connection failed")
        raise EmailDeliveryError(f"SMTP connection failed: {e}") from e

    try:
        server.ehlo()
        if settings.SMTP_PORT != 465:
            server.starttls()
            server.ehlo()

        if settings.SMTP_USER:
            server.login(settings.SMTP_USER, settings.SMTP_PASS)

        server.sendmail(settings.MAIL_FROM, [to_email], msg.as_string())
        logger.info("SMTP email sent: to=%s", to_email)
    except (OSError, smtplib.SMTPException) as e:
        logger.exception("SMTP email failed")
        raise EmailDeliveryError(f"SMTP email failed: {e}") from e
    finally:
        try:
            server.quit()
        except (OSError, smtplib.SMTPException):
            pass


def send_email(settings: Settings, to_email: str, subject: str, body: str, html: str | None = None) -> str | None:
    """
    Sends email using configured provider.
    - EMAIL_PROVIDER=smtp (default): SMTP_HOST/SMTP_PORT with SMTP_USER/SMTP_PASS
    - EMAIL_PROVIDER=resend: Resend API
    """
    provider = _normalize_provider(settings.EMAIL_PROVIDER)
    if provider == "resend":
        return _send_email_resend(settings, to_email=to_email, subject=subject, body=body, html=html)
    _send_email_smtp(settings, to_email=to_email, subject=subject, body=body, html=html)
    return None

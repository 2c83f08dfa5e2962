# app/core/config.py
import os

from dotenv import load_dotenv


def str_to_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def merge_unique(items: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for v in items:
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out


class Settings:
    def __init__(self) -> None:
        # Only load .env for local/dev. In prod, env vars come from the host config.
        self.ENV = os.getenv("ENV", "dev").strip().lower()  # dev | prod
        if self.ENV != "prod":
            load_dotenv()

        # ----------------------------
        # URLs
        # ----------------------------
        # APP_URL: frontend (verification redirect + CORS). API_URL: this service (email links).
        self.APP_URL = os.getenv("APP_URL", "").strip().rstrip("/")
        self.API_URL = os.getenv("API_URL", "http://localhost:8000").strip().rstrip("/")

        # ----------------------------
        # Database
        # ----------------------------
        self.DATABASE_URL = os.getenv("DATABASE_URL", "").strip()

        # ----------------------------
        # Auth / JWT session
        # ----------------------------
        self.JWT_SECRET = os.getenv("JWT_SECRET", "")
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15"))

        self.SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "access_token")
        self.SESSION_COOKIE_SAMESITE = os.getenv("SESSION_COOKIE_SAMESITE", "lax")
        self.SESSION_COOKIE_MAX_AGE_DAYS = int(os.getenv("SESSION_COOKIE_MAX_AGE_DAYS", "7"))

        self.EMAIL_VERIFY_TOKEN_EXPIRE_HOURS = int(os.getenv("EMAIL_VERIFY_TOKEN_EXPIRE_HOURS", "24"))

        # ----------------------------
        # Turnos
        # ----------------------------
        self.TURNO_TTL_DAYS = int(os.getenv("TURNO_TTL_DAYS", "7"))

        # ----------------------------
        # Email delivery
        # ----------------------------
        self.EMAIL_PROVIDER = os.getenv("EMAIL_PROVIDER", "smtp").strip().lower()
        self.MAIL_FROM = os.getenv("MAIL_FROM", "")
        self.RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")

        self.SMTP_HOST = os.getenv("SMTP_HOST", "")
        self.SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
        self.SMTP_USER = os.getenv("SMTP_USER", "")
        self.SMTP_PASS = os.getenv("SMTP_PASS", "")

        # ----------------------------
        # CORS
        # ----------------------------
        cors_from_env = parse_csv(os.getenv("CORS_ORIGINS"))
        self.CORS_ORIGINS = merge_unique(([self.APP_URL] if self.APP_URL else []) + cors_from_env)

        # ----------------------------
        # Expiry sweep (cron)
        # ----------------------------
        self.CLEANUP_ENABLED = str_to_bool(os.getenv("CLEANUP_ENABLED"), default=True)
        self.CLEANUP_CRON_HOUR = int(os.getenv("CLEANUP_CRON_HOUR", "3"))
        self.CLEANUP_CRON_MINUTE = int(os.getenv("CLEANUP_CRON_MINUTE", "0"))

        # Final: fail fast
        self._validate()

    def _validate(self) -> None:
        missing: list[str] = []

        if not self.APP_URL:
            missing.append("APP_URL")
        if not self.DATABASE_URL:
            missing.append("DATABASE_URL")
        if not self.JWT_SECRET or not self.JWT_SECRET.strip():
            missing.append("JWT_SECRET")

        if self.EMAIL_PROVIDER == "resend":
            if not self.RESEND_API_KEY:
                missing.append("RESEND_API_KEY")
        elif self.EMAIL_PROVIDER == "smtp":
            if not self.SMTP_HOST:
                missing.append("SMTP_HOST")
            if not self.SMTP_USER:
                missing.append("SMTP_USER")
            if not self.SMTP_PASS:
                missing.append("SMTP_PASS")
        else:
            raise RuntimeError(
                f"Unsupported EMAIL_PROVIDER={self.EMAIL_PROVIDER!r}. Supported: smtp (default), resend."
            )
        if not self.MAIL_FROM:
            missing.append("MAIL_FROM")

        if missing:
            raise RuntimeError(f"Missing required env vars: {', '.join(missing)}")

        if self.is_prod and not self.APP_URL.startswith("https://"):
            raise RuntimeError("APP_URL should be https://... in prod")

    @property
    def is_prod(self) -> bool:
        return self.ENV == "prod"

    @property
    def database_url(self) -> str:
        return self.DATABASE_URL


settings = Settings()


def get_settings() -> Settings:
    """FastAPI dependency: the process-wide settings built at startup."""
    return settings

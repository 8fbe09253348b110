import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "y", "on"}


def _csv(val: str | None, default: list[str]) -> list[str]:
    if not val:
        return default
    return [v.strip() for v in val.split(",") if v.strip()]


def _int(val: str | None, default: int) -> int:
    if not val:
        return default
    return int(val)


@dataclass(frozen=True)
class Settings:
    env: str = os.getenv("ENV", "local")

    # DB
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./eventhub.db")
    database_echo: bool = _bool(os.getenv("DATABASE_ECHO"), default=False)

    # Access tokens
    jwt_secret: str = os.getenv("JWT_SECRET", "change-me-local-dev-secret-32-chars")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    jwt_issuer: str = os.getenv("JWT_ISSUER", "eventhub")
    jwt_audience: str = os.getenv("JWT_AUDIENCE", "eventhub-api")
    access_token_ttl_seconds: int = _int(os.getenv("ACCESS_TOKEN_TTL_SECONDS"), 3600)

    # CORS
    cors_allow_origins: list[str] = field(
        default_factory=lambda: _csv(
            os.getenv("CORS_ALLOW_ORIGINS"),
            default=["http://localhost:3000", "http://127.0.0.1:3000"],
        )
    )

    # Security headers
    security_headers_enabled: bool = _bool(
        os.getenv("SECURITY_HEADERS_ENABLED"),
        default=True,
    )

    # Mail. Without SMTP_HOST the mailer only logs what it would have sent.
    smtp_host: str | None = os.getenv("SMTP_HOST") or None
    smtp_port: int = _int(os.getenv("SMTP_PORT"), 587)
    smtp_username: str = os.getenv("SMTP_USERNAME", "")
    smtp_password: str = os.getenv("SMTP_PASSWORD", "")
    smtp_starttls: bool = _bool(os.getenv("SMTP_STARTTLS"), default=True)
    smtp_ssl_tls: bool = _bool(os.getenv("SMTP_SSL_TLS"), default=False)
    smtp_timeout_seconds: int = _int(os.getenv("SMTP_TIMEOUT_SECONDS"), 10)
    mail_from: str = os.getenv("MAIL_FROM", "admin@eventapp.com")
    mail_from_name: str = os.getenv("MAIL_FROM_NAME", "Event App Admin")

    # Accounts created with one of these emails sign up as ADMIN.
    admin_emails: list[str] = field(
        default_factory=lambda: [
            email.lower() for email in _csv(os.getenv("ADMIN_EMAILS"), default=[])
        ]
    )

    # Realtime
    realtime_channel: str = os.getenv("REALTIME_CHANNEL", "events")
    realtime_queue_size: int = _int(os.getenv("REALTIME_QUEUE_SIZE"), 100)

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_json: bool = _bool(os.getenv("LOG_JSON"), default=True)


settings = Settings()

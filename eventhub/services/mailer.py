from __future__ import annotations

import structlog
from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from fastapi_mail.errors import ConnectionErrors

from eventhub.core.config import Settings

logger = structlog.get_logger(__name__)

WELCOME_SUBJECT = "Welcome to the Event Management App!"
WELCOME_HTML = (
    "<b>Welcome!</b><p>Your account has been successfully created.</p>"
    "<p>(This is a mock email).</p>"
)


def connection_config(settings: Settings) -> ConnectionConfig:
    return ConnectionConfig(
        MAIL_USERNAME=settings.smtp_username,
        MAIL_PASSWORD=settings.smtp_password,
        MAIL_FROM=settings.mail_from,
        MAIL_FROM_NAME=settings.mail_from_name,
        MAIL_SERVER=settings.smtp_host,
        MAIL_PORT=settings.smtp_port,
        MAIL_STARTTLS=settings.smtp_starttls,
        MAIL_SSL_TLS=settings.smtp_ssl_tls,
        USE_CREDENTIALS=bool(settings.smtp_username),
        TIMEOUT=settings.smtp_timeout_seconds,
    )


class Mailer:
    """Fire-and-forget welcome mail.

    ``notify`` never raises: it is scheduled after the response has been sent
    and a delivery problem must not surface to the client. Without
    ``SMTP_HOST`` nothing is sent and the mail is only logged.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.client: FastMail | None = (
            FastMail(connection_config(settings)) if settings.smtp_host else None
        )

    def build_welcome(self, to: str) -> MessageSchema:
        return MessageSchema(
            subject=WELCOME_SUBJECT,
            recipients=[to],
            body=WELCOME_HTML,
            subtype=MessageType.html,
        )

    async def notify(self, email: str) -> bool:
        if self.client is None:
            logger.info("mail_skipped_no_smtp", to=email, subject=WELCOME_SUBJECT)
            return False

        try:
            await self.client.send_message(self.build_welcome(email))
        except (ConnectionErrors, OSError):
            logger.exception("mail_send_failed", to=email)
            return False

        logger.info("mail_sent", to=email, subject=WELCOME_SUBJECT)
        return True

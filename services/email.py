"""Verification email delivery."""

import logging

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from core.config import Settings
from core.metrics import email_delivery_failures_total

logger = logging.getLogger(__name__)

SUBJECT = "Your Campus Connect verification code"

HTML_TEMPLATE = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h2 style="color: #333;">Campus Connect - Verification Code</h2>
  <p>Your verification code is:</p>
  <div style="background: #f0f0f0; padding: 20px; text-align: center; font-size: 32px;
              font-weight: bold; letter-spacing: 5px; margin: 20px 0; border-radius: 8px;">
    {code}
  </div>
  <p style="color: #666; font-size: 14px;">This code will expire in {ttl} minutes.</p>
  <p style="color: #666; font-size: 14px;">If you didn't request this code, please ignore this email.</p>
</div>
"""


class EmailNotConfigured(RuntimeError):
    """Raised when no mail server is configured."""


class EmailSender:
    """Sends verification codes over SMTP."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._mailer: FastMail | None = None
        if settings.mail_enabled:
            self._mailer = FastMail(
                ConnectionConfig(
                    MAIL_USERNAME=settings.mail_username,
                    MAIL_PASSWORD=settings.mail_password,
                    MAIL_FROM=settings.mail_from,
                    MAIL_FROM_NAME=settings.mail_from_name,
                    MAIL_PORT=settings.mail_port,
                    MAIL_SERVER=settings.mail_server,
                    MAIL_STARTTLS=settings.mail_starttls,
                    MAIL_SSL_TLS=settings.mail_ssl_tls,
                    USE_CREDENTIALS=bool(settings.mail_username),
                    VALIDATE_CERTS=True,
                )
            )

    async def send_verification_email(self, email: str, code: str) -> None:
        """
        Send a verification code.

        Raises:
            EmailNotConfigured: No mail server configured
            Exception: Any SMTP/transport failure from fastapi-mail
        """
        if self._mailer is None:
            if self.settings.is_development:
                logger.info(f"Mail not configured; verification code for {email} is {code}")
            raise EmailNotConfigured("Email service not configured")

        ttl = self.settings.otp_ttl_minutes
        message = MessageSchema(
            subject=SUBJECT,
            recipients=[email],
            body=HTML_TEMPLATE.format(code=code, ttl=ttl),
            subtype=MessageType.html,
        )
        await self._mailer.send_message(message)
        logger.info(f"Verification email sent to {email}")


async def deliver_verification_email(sender: EmailSender, email: str, code: str) -> None:
    """
    Background task wrapper: delivery failures are logged and swallowed.

    Callers must not learn whether delivery worked, otherwise the signup and
    send-code responses would reveal which emails are registered.
    """
    try:
        await sender.send_verification_email(email, code)
    except EmailNotConfigured:
        email_delivery_failures_total.inc()
        logger.error(f"Email service not configured, verification code for {email} not delivered")
    except Exception:
        email_delivery_failures_total.inc()
        logger.exception(f"Failed to send verification email to {email}")

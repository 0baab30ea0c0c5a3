"""
DevCamper Backend — Email Service
===================================

What:  Sends transactional email (password reset links) over SMTP.
How:   aiosmtplib, so delivery never blocks the event loop. A plain-text
       part is always sent; HTML is optional.

Delivery failures raise EmailDeliveryError. The caller decides what to undo
(AuthService clears the stored reset token before re-raising).
"""

import logging
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

import aiosmtplib

from app.config import settings
from app.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailConfig:
    host: str
    port: int = 587
    user: str = ""
    password: str = ""
    use_tls: bool = True
    from_email: str = "noreply@devcamper.io"
    from_name: str = "DevCamper"


class EmailService:
    """Async SMTP sender."""

    def __init__(self, config: EmailConfig):
        self.config = config

    @classmethod
    def from_settings(cls) -> "EmailService":
        return cls(
            EmailConfig(
                host=settings.smtp_host,
                port=settings.smtp_port,
                user=settings.smtp_user,
                password=settings.smtp_password,
                use_tls=settings.smtp_use_tls,
                from_email=settings.from_email,
                from_name=settings.from_name,
            )
        )

    def build_message(
        self, to_email: str, subject: str, text: str, html: Optional[str] = None
    ) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["From"] = f"{self.config.from_name} <{self.config.from_email}>"
        message["To"] = to_email
        message["Subject"] = subject
        message.attach(MIMEText(text, "plain"))
        if html:
            message.attach(MIMEText(html, "html"))
        return message

    async def send_email(
        self, to_email: str, subject: str, text: str, html: Optional[str] = None
    ) -> None:
        """
        Raises:
            EmailDeliveryError if the SMTP server cannot be reached or refuses the message.
        """
        message = self.build_message(to_email, subject, text, html)
        try:
            await aiosmtplib.send(
                message,
                hostname=self.config.host,
                port=self.config.port,
                username=self.config.user or None,
                password=self.config.password or None,
                start_tls=self.config.use_tls,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("[Email/SMTP] Failed to send email to %s: %s", to_email, e)
            raise EmailDeliveryError(context={"to": to_email, "error": str(e)})

        logger.info("[Email/SMTP] Sent email to %s: %s", to_email, subject)

    async def send_password_reset(self, to_email: str, reset_url: str) -> None:
        text = (
            "You are receiving this email because you (or someone else) has "
            "requested the reset of a password. Please make a PUT request to:\n\n"
            f"{reset_url}"
        )
        await self.send_email(to_email, "Password reset token", text)

"""
Welcome e-mail delivery.

Sending is fire-and-forget: a delivery failure is logged and never reaches
the registration request that triggered it.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from functools import lru_cache
from html import escape

from poketeams.config import settings

logger = logging.getLogger(__name__)

WELCOME_SUBJECT = "Welcome to Pokémon Teams"

_WELCOME_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><title>Welcome to Pokémon Teams</title></head>
<body style="font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: 0 auto;">
  <h1 style="color: #ff6b6b; text-align: center;">Welcome to Pokémon Teams</h1>
  <h2>Hello {user_name},</h2>
  <p>
    Your account has been successfully created and you can now start
    building your Pokémon teams.
  </p>
  <ul>
    <li>Create and manage your favorite Pokémon teams</li>
    <li>Acquire new Pokémon for your collection</li>
    <li>Open mystery boxes for a chance at something rare</li>
  </ul>
  <p>Let your adventure begin!</p>
  <p style="font-size: 12px; color: #777;">This is an automated email, please do not reply.</p>
</body>
</html>
"""


def render_welcome_email(user_name: str) -> str:
    return _WELCOME_TEMPLATE.format(user_name=escape(user_name))


class EmailService:
    """Sends transactional e-mail over SMTP."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        user: str | None = None,
        password: str | None = None,
        use_tls: bool | None = None,
        sender: str | None = None,
    ) -> None:
        self.host = settings.smtp_host if host is None else host
        self.port = port or settings.smtp_port
        self.user = settings.smtp_user if user is None else user
        self.password = settings.smtp_password if password is None else password
        self.use_tls = settings.smtp_use_tls if use_tls is None else use_tls
        self.sender = sender or settings.email_from

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    def build_welcome_message(self, to: str, user_name: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = WELCOME_SUBJECT
        message["From"] = self.sender
        message["To"] = to
        message.set_content(f"Hello {user_name}, welcome to Pokémon Teams!")
        message.add_alternative(render_welcome_email(user_name), subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=30) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.user:
                smtp.login(self.user, self.password)
            smtp.send_message(message)

    async def send_welcome_email(self, to: str, user_name: str) -> None:
        """Send the welcome e-mail. Never raises."""
        if not self.enabled:
            logger.debug("SMTP not configured, skipping welcome email to %s", to)
            return

        message = self.build_welcome_message(to, user_name)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError):
            logger.exception("Error sending welcome email to %s", to)
            return

        logger.info("Welcome email sent successfully to %s", to)


@lru_cache
def get_email_service() -> EmailService:
    return EmailService()

"""Outbound email for password reset links.

Delivery is best effort: failures are logged and reported as False,
never raised to the caller. SMTP runs in a worker thread so the event
loop is not blocked.
"""

from __future__ import annotations

import asyncio
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from fraudbucket.core.config import EmailConfig
from fraudbucket.core.logging import get_logger, redact_email

logger = get_logger(__name__)

RESET_SUBJECT = "Password Reset Request"


class Mailer:
    """SMTP mailer; logs instead of sending when no SMTP host is configured."""

    def __init__(self, config: EmailConfig, *, link_ttl_minutes: int = 15):
        self.config = config
        self.from_email = config.from_email or config.smtp_user
        self.link_ttl_minutes = link_ttl_minutes

    @property
    def is_configured(self) -> bool:
        return bool(self.config.smtp_host and self.from_email)

    def _build_reset_message(self, to_email: str, reset_url: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = RESET_SUBJECT
        msg["From"] = f"{self.config.from_name} <{self.from_email}>"
        msg["To"] = to_email

        text_body = (
            "You requested a password reset. Open the link below to reset your password:\n\n"
            f"{reset_url}\n\n"
            f"This link will expire in {self.link_ttl_minutes} minutes."
        )
        html_body = (
            "<p>You requested a password reset. Click the link below to reset your password:</p>"
            f'<a href="{reset_url}">Reset Password</a>'
            f"<p>This link will expire in {self.link_ttl_minutes} minutes.</p>"
        )
        msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))
        return msg

    def _send(self, to_email: str, msg: MIMEMultipart) -> None:
        context = ssl.create_default_context()
        user = self.config.smtp_user
        password = self.config.smtp_password.get_secret_value()
        timeout = self.config.timeout_seconds

        if self.config.use_tls:
            with smtplib.SMTP(
                self.config.smtp_host, self.config.smtp_port, timeout=timeout
            ) as server:
                server.starttls(context=context)
                if user and password:
                    server.login(user, password)
                server.sendmail(self.from_email, to_email, msg.as_string())
        else:
            with smtplib.SMTP_SSL(
                self.config.smtp_host, self.config.smtp_port, context=context, timeout=timeout
            ) as server:
                if user and password:
                    server.login(user, password)
                server.sendmail(self.from_email, to_email, msg.as_string())

    async def send_reset_link(self, to_email: str, reset_url: str) -> bool:
        """Send the reset link. Returns True on success, False otherwise."""
        if not self.is_configured:
            logger.info("email_dev_mode", to=redact_email(to_email), subject=RESET_SUBJECT)
            return True

        msg = self._build_reset_message(to_email, reset_url)
        try:
            await asyncio.to_thread(self._send, to_email, msg)
        except smtplib.SMTPAuthenticationError as e:
            logger.error("email_auth_failed", to=redact_email(to_email), error_code=e.smtp_code)
            return False
        except (smtplib.SMTPException, ssl.SSLError, OSError) as e:
            logger.error(
                "email_send_failed",
                to=redact_email(to_email),
                host=self.config.smtp_host,
                error_type=type(e).__name__,
                error=str(e),
            )
            return False

        logger.info("email_sent", to=redact_email(to_email), subject=RESET_SUBJECT)
        return True

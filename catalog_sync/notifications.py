"""
Email alerts for failed sync runs.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage

logger = logging.getLogger(__name__)


class EmailNotifier:
    """Sends plain-text alerts over SMTP (SSL)."""

    def __init__(
        self,
        smtp_host: str,
        smtp_port: int,
        username: str,
        password: str,
        recipient: str,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.username = username
        self.password = password
        self.recipient = recipient

    @property
    def enabled(self) -> bool:
        return bool(self.username and self.password and self.recipient)

    def _send(self, message: EmailMessage) -> None:
        with smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, timeout=30) as smtp:
            smtp.login(self.username, self.password)
            smtp.send_message(message)

    async def send(self, subject: str, body: str) -> bool:
        """
        Send an alert email.

        Returns:
            True if sent; False if disabled or delivery failed
        """
        if not self.enabled:
            logger.debug(f"Email notifications disabled, not sending '{subject}'")
            return False

        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.username
        message["To"] = self.recipient
        message.set_content(body)

        try:
            await asyncio.to_thread(self._send, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send notification '{subject}': {e}")
            return False

        logger.info(f"Sent notification '{subject}' to {self.recipient}")
        return True

"""
SMTP delivery for attestation notifications
"""

import smtplib
import time
from email.message import EmailMessage

from app.logger import get_logger
from app.services.notifications.base import Notification, NotificationDispatcher

logger = get_logger("asset_attestation.services.notifications.smtp")


class SmtpNotificationDispatcher(NotificationDispatcher):
    """
    Sends each notification over a fresh SMTP connection, retrying with a
    linear backoff. Safe to call from several worker threads at once.
    """

    def __init__(self, smtp_host: str, smtp_port: int = 587, smtp_user: str = None, smtp_pass: str = None,
                 use_tls: bool = True, sender: str = 'attestation@localhost',
                 frontend_url: str = 'http://localhost:5173',
                 retry_attempts: int = 2, retry_backoff: float = 2.0, timeout: int = 15):
        super().__init__(frontend_url=frontend_url, sender=sender)
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_pass = smtp_pass
        self.use_tls = use_tls
        self.retry_attempts = retry_attempts
        self.retry_backoff = retry_backoff
        self.timeout = timeout

    def _build_message(self, notification: Notification) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = ", ".join(notification.recipients)
        msg["Subject"] = notification.subject
        msg.set_content(notification.body)
        return msg

    def _deliver(self, notification: Notification) -> None:
        msg = self._build_message(notification)
        last_error = None
        for attempt in range(1, self.retry_attempts + 2):
            try:
                with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                    if self.use_tls:
                        server.starttls()
                    if self.smtp_user and self.smtp_pass:
                        server.login(self.smtp_user, self.smtp_pass)
                    server.send_message(msg)
                return
            except (smtplib.SMTPException, OSError) as e:
                last_error = e
                logger.warning(f"SMTP attempt {attempt} for {notification.kind} failed: {e}")
                if attempt <= self.retry_attempts:
                    time.sleep(self.retry_backoff * attempt)
        raise last_error

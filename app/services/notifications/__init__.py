"""
Outbound notifications for the attestation core
"""

from flask import current_app

from app.services.notifications.base import (
    CampaignSnapshot,
    DispatchResult,
    Notification,
    NotificationDispatcher,
    NotificationKind,
)
from app.services.notifications.smtp import SmtpNotificationDispatcher
from app.services.notifications.logging_dispatcher import LoggingNotificationDispatcher
from app.logger import get_logger

logger = get_logger("asset_attestation.services.notifications")

__all__ = [
    'CampaignSnapshot',
    'DispatchResult',
    'Notification',
    'NotificationDispatcher',
    'NotificationKind',
    'SmtpNotificationDispatcher',
    'LoggingNotificationDispatcher',
    'build_dispatcher',
    'get_dispatcher',
]


def build_dispatcher(config) -> NotificationDispatcher:
    """
    Pick the dispatcher for an application config.

    SMTP when SMTP_HOST is set, otherwise notifications are only logged.
    """
    frontend_url = config.get('FRONTEND_URL', 'http://localhost:5173')
    sender = config.get('SMTP_FROM', 'attestation@localhost')

    if config.get('SMTP_HOST'):
        logger.info(f"Using SMTP notification dispatcher ({config['SMTP_HOST']})")
        return SmtpNotificationDispatcher(
            smtp_host=config['SMTP_HOST'],
            smtp_port=config.get('SMTP_PORT', 587),
            smtp_user=config.get('SMTP_USERNAME'),
            smtp_pass=config.get('SMTP_PASSWORD'),
            use_tls=config.get('SMTP_USE_TLS', True),
            sender=sender,
            frontend_url=frontend_url,
        )

    logger.warning("SMTP_HOST not set; notifications will be written to the log only")
    return LoggingNotificationDispatcher(frontend_url=frontend_url, sender=sender)


def get_dispatcher() -> NotificationDispatcher:
    """Return the dispatcher registered on the current application"""
    return current_app.extensions['notification_dispatcher']

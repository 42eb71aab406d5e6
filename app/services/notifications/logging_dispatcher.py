"""
Development dispatcher: writes notifications to the application log instead of sending them
"""

from app.logger import get_logger
from app.services.notifications.base import Notification, NotificationDispatcher
from app.utils.logging_sanitizer import redact_invite_links

logger = get_logger("asset_attestation.services.notifications.outbox")


class LoggingNotificationDispatcher(NotificationDispatcher):

    def _deliver(self, notification: Notification) -> None:
        logger.info(
            f"[{notification.kind}] to={', '.join(notification.recipients)} subject={notification.subject!r}"
        )
        # Invite links are bearer credentials
        logger.debug(redact_invite_links(notification.body))

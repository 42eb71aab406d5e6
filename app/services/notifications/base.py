"""
Notification dispatcher contract

The attestation core hands every outbound email to a NotificationDispatcher.
send() never raises: delivery problems come back as a failed DispatchResult
so callers decide whether a failure matters (it only does when the send is
the point of the call, e.g. a manual reminder).
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from email_validator import validate_email, EmailNotValidError

from app.logger import get_logger
from app.services.notifications.templates import compose_message

logger = get_logger("asset_attestation.services.notifications")


class NotificationKind:
    LAUNCH = 'launch'
    REMINDER = 'reminder'
    ESCALATION = 'escalation'
    INVITE = 'invite'
    UNREGISTERED_REMINDER = 'unregistered_reminder'
    UNREGISTERED_ESCALATION = 'unregistered_escalation'
    COMPLETION_ADMIN = 'completion_admin'

    ALL = (
        LAUNCH,
        REMINDER,
        ESCALATION,
        INVITE,
        UNREGISTERED_REMINDER,
        UNREGISTERED_ESCALATION,
        COMPLETION_ADMIN,
    )


@dataclass(frozen=True)
class CampaignSnapshot:
    """
    Plain copy of the campaign fields templates need. Dispatch runs on worker
    threads, so ORM instances are never handed to a dispatcher.
    """
    id: int
    name: str
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @classmethod
    def from_campaign(cls, campaign) -> 'CampaignSnapshot':
        return cls(
            id=campaign.id,
            name=campaign.name,
            description=campaign.description,
            start_date=campaign.start_date,
            end_date=campaign.end_date,
        )


@dataclass
class Notification:
    kind: str
    recipients: List[str]
    subject: str
    body: str
    campaign: Optional[CampaignSnapshot] = None
    context: dict = field(default_factory=dict)


@dataclass(frozen=True)
class DispatchResult:
    success: bool
    error: Optional[str] = None


class NotificationDispatcher:
    """
    Base dispatcher: validates, composes and hands the message to _deliver().

    Subclasses implement _deliver(notification) and may raise from it.
    """

    def __init__(self, frontend_url: str = 'http://localhost:5173', sender: str = 'attestation@localhost'):
        self.frontend_url = (frontend_url or '').rstrip('/')
        self.sender = sender

    def send(self, kind: str, recipient, campaign, **context) -> DispatchResult:
        """
        Compose and deliver one notification.

        Args:
            kind: One of NotificationKind.ALL
            recipient: Email address, or a list of addresses (admin notifications)
            campaign: CampaignSnapshot (or anything exposing its fields)
            **context: Template values for the kind

        Returns:
            DispatchResult: success flag and error text
        """
        if kind not in NotificationKind.ALL:
            return DispatchResult(False, f"Unknown notification kind: {kind}")

        recipients = [recipient] if isinstance(recipient, str) else [r for r in (recipient or []) if r]
        if not recipients:
            return DispatchResult(False, "No recipient address")

        for address in recipients:
            try:
                validate_email(address, check_deliverability=False)
            except EmailNotValidError as e:
                logger.warning(f"Not sending {kind} notification to invalid address: {e}")
                return DispatchResult(False, f"invalid: {e}")

        try:
            subject, body = compose_message(kind, campaign, self.frontend_url, **context)
            notification = Notification(
                kind=kind,
                recipients=recipients,
                subject=subject,
                body=body,
                campaign=campaign,
                context=context,
            )
            self._deliver(notification)
        except Exception as e:
            logger.error(f"Failed to send {kind} notification for campaign {getattr(campaign, 'id', None)}: {e}",
                         exc_info=True)
            return DispatchResult(False, str(e))

        logger.info(f"Sent {kind} notification to {len(recipients)} recipient(s)")
        return DispatchResult(True)

    def _deliver(self, notification: Notification) -> None:
        raise NotImplementedError

"""
InviteManager - pending invites for asset owners without an account

Invites are created when a campaign starts, re-sent on request, reminded and
escalated by the sweeps, and converted into attestation records the first
time the owner signs in.
"""

import secrets
from dataclasses import dataclass, asdict
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.buisness.attestation.batch import BatchResult
from app.buisness.attestation.clock import get_clock
from app.buisness.attestation.errors import DependencyFailure, InvalidStateError
from app.buisness.attestation.fanout import NotificationJob, dispatch_all, stamp_sent
from app.buisness.attestation.lookup import load_campaign, load_invite
from app.buisness.attestation.narrator import AttestationNarrator
from app.buisness.attestation.registry import AssetRegistry
from app.buisness.attestation.state_machine import CampaignStateMachine, RecordStateMachine
from app.buisness.core.audit_context import AuditContext
from app.data.attestation.pending_invite import AttestationPendingInvite
from app.data.attestation.record import AttestationRecord
from app.logger import get_logger
from app.services.notifications import CampaignSnapshot, NotificationKind, get_dispatcher

logger = get_logger("asset_attestation.buisness.attestation.invite_manager")


@dataclass
class InviteValidation:
    valid: bool
    error: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    campaign_name: Optional[str] = None
    campaign_description: Optional[str] = None
    asset_count: int = 0

    def to_dict(self) -> dict:
        if not self.valid:
            return {'valid': False, 'error': self.error}
        data = asdict(self)
        data.pop('error')
        return data


class InviteManager:
    """
    Owns the pending invite lifecycle.

    Collaborators default to the ones registered on the current app.
    """

    def __init__(self, dispatcher=None, clock=None, registry=AssetRegistry):
        self.dispatcher = dispatcher or get_dispatcher()
        self.clock = clock or get_clock()
        self.registry = registry

    @staticmethod
    def generate_token() -> str:
        return secrets.token_hex(32)

    # ========== Creation ==========

    def create_invites(self, campaign_id: int, owners) -> BatchResult:
        """
        Insert one invite per unregistered owner, each in its own transaction.

        Returns:
            BatchResult: succeeded holds dicts with the invite id, email, name,
            token and asset count; failed holds (email, error)
        """
        result = BatchResult()
        for owner in owners:
            token = self.generate_token()
            try:
                invite = AttestationPendingInvite(
                    campaign_id=campaign_id,
                    employee_email=owner.email,
                    employee_first_name=owner.first_name,
                    employee_last_name=owner.last_name,
                    invite_token=token,
                    invite_sent_at=self.clock.now(),
                )
                db.session.add(invite)
                db.session.commit()
                result.add_success({
                    'invite_id': invite.id,
                    'email': owner.email,
                    'first_name': owner.first_name,
                    'last_name': owner.last_name,
                    'invite_token': token,
                    'asset_count': owner.asset_count,
                })
            except SQLAlchemyError as e:
                db.session.rollback()
                logger.error(f"Failed to create invite for {owner.email} in campaign {campaign_id}: {e}")
                result.add_failure(owner.email, e)
        logger.info(f"Created {result.success_count} invite(s) for campaign {campaign_id}, {result.failure_count} failed")
        return result

    @staticmethod
    def invite_job(key, snapshot: CampaignSnapshot, email: str, first_name, last_name, token: str,
                   asset_count: int, kind: str = NotificationKind.INVITE) -> NotificationJob:
        return NotificationJob(
            key=key,
            kind=kind,
            recipient=email,
            campaign=snapshot,
            context={
                'first_name': first_name,
                'last_name': last_name,
                'invite_token': token,
                'asset_count': asset_count,
            },
        )

    def _job_for(self, invite: AttestationPendingInvite, snapshot: CampaignSnapshot,
                 kind: str = NotificationKind.INVITE) -> NotificationJob:
        return self.invite_job(
            invite.id, snapshot, invite.employee_email, invite.employee_first_name,
            invite.employee_last_name, invite.invite_token,
            len(self.registry.assets_for_owner(invite.employee_email)), kind,
        )

    # ========== Read model ==========

    @staticmethod
    def pending_for_campaign(campaign_id: int) -> List[AttestationPendingInvite]:
        load_campaign(campaign_id)
        return (
            AttestationPendingInvite.query
            .filter_by(campaign_id=campaign_id)
            .filter(AttestationPendingInvite.registered_at.is_(None))
            .order_by(AttestationPendingInvite.id)
            .all()
        )

    def validate_token(self, token: str) -> InviteValidation:
        """Public check of a registration link"""
        invite = AttestationPendingInvite.query.filter_by(invite_token=token).first() if token else None
        if invite is None:
            return InviteValidation(valid=False, error='Invalid invite token')
        if invite.is_converted:
            return InviteValidation(valid=False, error='Invite has already been used')
        campaign = invite.campaign
        if campaign is None:
            return InviteValidation(valid=False, error='Campaign not found')
        if campaign.status != CampaignStateMachine.ACTIVE:
            return InviteValidation(valid=False, error='Campaign is no longer active')
        return InviteValidation(
            valid=True,
            email=invite.employee_email,
            first_name=invite.employee_first_name,
            last_name=invite.employee_last_name,
            campaign_name=campaign.name,
            campaign_description=campaign.description,
            asset_count=len(self.registry.assets_for_owner(invite.employee_email)),
        )

    # ========== Resend ==========

    def resend(self, invite_id: int, actor) -> AttestationPendingInvite:
        """
        Re-send one invite email.

        Raises:
            AttestationNotFoundError: Unknown invite
            InvalidStateError: Invite already converted, or campaign not active
            DependencyFailure: The email could not be sent
        """
        invite = load_invite(invite_id)
        if invite.is_converted:
            raise InvalidStateError("User has already registered")
        campaign = invite.campaign
        if campaign.status != CampaignStateMachine.ACTIVE:
            raise InvalidStateError("Campaign is not active")

        job = self._job_for(invite, CampaignSnapshot.from_campaign(campaign))
        outcome = self.dispatcher.send(job.kind, job.recipient, job.campaign, **job.context)
        if not outcome.success:
            raise DependencyFailure(outcome.error or 'Failed to send invite')

        invite.invite_sent_at = self.clock.now()
        db.session.commit()
        AuditContext.record(
            'resend_invite', 'attestation_pending_invite', invite.id, invite.employee_email,
            AttestationNarrator.invite_resent(invite), actor,
        )
        return invite

    def resend_for_campaign(self, campaign_id: int, actor, invite_ids=None) -> BatchResult:
        """
        Re-send the selected (or all) unconverted invites of an active campaign.

        Ids that are unknown, converted or belong to another campaign are
        reported as failed.
        """
        campaign = load_campaign(campaign_id)
        if campaign.status != CampaignStateMachine.ACTIVE:
            raise InvalidStateError("Campaign is not active")

        result = BatchResult()
        candidates = self.pending_for_campaign(campaign_id)
        if invite_ids:
            by_id = {invite.id: invite for invite in candidates}
            selected = []
            for invite_id in invite_ids:
                if invite_id in by_id:
                    selected.append(by_id[invite_id])
                else:
                    result.add_failure(invite_id, 'Invite not found or already registered')
            candidates = selected

        snapshot = CampaignSnapshot.from_campaign(campaign)
        sent = dispatch_all(self.dispatcher, [self._job_for(invite, snapshot) for invite in candidates])
        stamp_sent(AttestationPendingInvite, sent.succeeded, 'invite_sent_at', self.clock.now())
        result.extend(sent)

        AuditContext.record(
            'resend_invites', 'attestation_campaign', campaign.id, campaign.name,
            AttestationNarrator.invites_resent(campaign, result.success_count, result.failure_count), actor,
        )
        return result

    # ========== Conversion ==========

    def convert_for_user(self, user) -> BatchResult:
        """
        Turn the user's unconverted invites into attestation records.

        Invites of campaigns that are no longer active are skipped. An existing
        record for the same campaign and user is reused. Failures are logged
        and reported per invite; nothing is raised.

        Returns:
            BatchResult: succeeded holds record ids, failed holds (invite id, error)
        """
        result = BatchResult()
        user_id = user.id
        email = (user.email or '').strip().lower()
        if not email:
            return result

        invite_ids = [
            row[0] for row in db.session.query(AttestationPendingInvite.id)
            .filter(func.lower(AttestationPendingInvite.employee_email) == email)
            .filter(AttestationPendingInvite.registered_at.is_(None))
            .order_by(AttestationPendingInvite.id)
            .all()
        ]

        for invite_id in invite_ids:
            try:
                record_id = self._convert_one(invite_id, user)
            except SQLAlchemyError as e:
                db.session.rollback()
                logger.error(f"Failed to convert invite {invite_id} for user {user_id}: {e}", exc_info=True)
                result.add_failure(invite_id, e)
                continue
            if record_id is not None:
                result.add_success(record_id)

        if invite_ids:
            logger.info(f"Converted {result.success_count} of {len(invite_ids)} invite(s) for user {user_id}")
        return result

    def _convert_one(self, invite_id: int, user) -> Optional[int]:
        user_id = user.id
        invite = db.session.get(AttestationPendingInvite, invite_id)
        if invite is None or invite.is_converted:
            return None
        campaign = invite.campaign
        if campaign.status != CampaignStateMachine.ACTIVE:
            logger.info(f"Skipping invite {invite_id}: campaign {campaign.id} is {campaign.status}")
            return None

        record = AttestationRecord.query.filter_by(campaign_id=campaign.id, user_id=user_id).first()
        if record is None:
            record = AttestationRecord(
                campaign_id=campaign.id,
                user_id=user_id,
                status=RecordStateMachine.PENDING,
            )
            db.session.add(record)
            db.session.flush()

        # Claim the invite; a concurrent login may have converted it already
        claimed = (
            AttestationPendingInvite.query
            .filter_by(id=invite_id, registered_at=None)
            .update({'registered_at': self.clock.now(), 'converted_record_id': record.id},
                    synchronize_session=False)
        )
        if claimed != 1:
            db.session.rollback()
            return None

        record_id = record.id
        db.session.commit()
        AuditContext.record(
            'convert_invite', 'attestation_pending_invite', invite_id, invite.employee_email,
            AttestationNarrator.invite_converted(invite, record), user,
        )
        return record_id

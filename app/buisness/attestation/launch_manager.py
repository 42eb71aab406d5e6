"""
LaunchManager - the draft → active transition and its fan-out

Claims the transition with a compare-and-set update so only one caller ever
fans out, creates records and invites one transaction at a time, then sends
launch and invite emails concurrently.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.buisness.attestation.batch import BatchResult
from app.buisness.attestation.errors import InvalidStateError
from app.buisness.attestation.fanout import NotificationJob, dispatch_all
from app.buisness.attestation.invite_manager import InviteManager
from app.buisness.attestation.state_machine import CampaignStateMachine, RecordStateMachine
from app.buisness.attestation.targeting import ResolvedTargets
from app.data.attestation.campaign import AttestationCampaign
from app.data.attestation.record import AttestationRecord
from app.logger import get_logger
from app.services.notifications import CampaignSnapshot, NotificationKind

if TYPE_CHECKING:
    from app.buisness.attestation.campaign_context import CampaignContext

logger = get_logger("asset_attestation.buisness.attestation.launch_manager")


@dataclass
class LaunchResult:
    campaign_id: int
    records: BatchResult
    invites: BatchResult
    emails: BatchResult
    invite_emails: BatchResult

    @property
    def records_created(self) -> int:
        return self.records.success_count

    @property
    def emails_sent(self) -> int:
        return self.emails.success_count

    @property
    def invites_created(self) -> int:
        return self.invites.success_count

    @property
    def invite_emails_sent(self) -> int:
        return self.invite_emails.success_count

    @property
    def failures(self) -> int:
        return sum(batch.failure_count for batch in (self.records, self.invites, self.emails, self.invite_emails))

    def to_dict(self) -> dict:
        return {
            'campaign_id': self.campaign_id,
            'records_created': self.records_created,
            'emails_sent': self.emails_sent,
            'invites_created': self.invites_created,
            'invite_emails_sent': self.invite_emails_sent,
            'failed': {
                'records': self.records.to_dict()['failed'],
                'invites': self.invites.to_dict()['failed'],
                'emails': self.emails.to_dict()['failed'],
                'invite_emails': self.invite_emails.to_dict()['failed'],
            },
        }


class LaunchManager:
    """
    Manager for campaign launch.

    Owned by a CampaignContext; reads the campaign, clock, dispatcher and
    invite manager from it.
    """

    def __init__(self, ctx: 'CampaignContext'):
        self.ctx = ctx

    def claim_activation(self, actor) -> None:
        """
        Move the campaign from draft to active in a single conditional UPDATE
        that also resets start_date to now.

        Raises:
            InvalidStateError: Another caller started (or removed) the campaign first
        """
        now = self.ctx.clock.now()
        claimed = (
            AttestationCampaign.query
            .filter_by(id=self.ctx.campaign_id, status=CampaignStateMachine.DRAFT)
            .update({
                'status': CampaignStateMachine.ACTIVE,
                'start_date': now,
                'updated_at': now,
                'updated_by_id': getattr(actor, 'id', None),
            }, synchronize_session=False)
        )
        if claimed != 1:
            db.session.rollback()
            raise InvalidStateError("Campaign has already been started")
        db.session.commit()
        logger.info(f"Campaign {self.ctx.campaign_id} activated")

    def create_records(self, recipients, actor) -> BatchResult:
        """
        Insert one pending record per recipient, each in its own transaction.

        Returns:
            BatchResult: succeeded holds {'record_id', 'user_id', 'email'},
            failed holds ({'user_id', 'email'}, error)
        """
        result = BatchResult()
        campaign_id = self.ctx.campaign_id
        actor_id = getattr(actor, 'id', None)
        targets = [(user.id, user.email) for user in recipients]

        for user_id, email in targets:
            try:
                record = AttestationRecord(
                    campaign_id=campaign_id,
                    user_id=user_id,
                    status=RecordStateMachine.PENDING,
                    created_by_id=actor_id,
                    updated_by_id=actor_id,
                )
                db.session.add(record)
                db.session.commit()
                result.add_success({'record_id': record.id, 'user_id': user_id, 'email': email})
            except SQLAlchemyError as e:
                db.session.rollback()
                logger.error(f"Failed to create record for user {user_id} in campaign {campaign_id}: {e}")
                result.add_failure({'user_id': user_id, 'email': email}, e)

        logger.info(f"Created {result.success_count} record(s) for campaign {campaign_id}, {result.failure_count} failed")
        return result

    def launch(self, targets: ResolvedTargets, actor) -> LaunchResult:
        """Create records and invites for resolved targets, then send their emails"""
        records = self.create_records(targets.recipients, actor)
        invites = self.ctx.invite_manager.create_invites(self.ctx.campaign_id, targets.unregistered_owners)

        snapshot = CampaignSnapshot.from_campaign(self.ctx.campaign)
        launch_jobs = [
            NotificationJob(item['record_id'], NotificationKind.LAUNCH, item['email'], snapshot)
            for item in records.succeeded if item['email']
        ]
        invite_jobs = [
            InviteManager.invite_job(
                item['invite_id'], snapshot, item['email'], item['first_name'], item['last_name'],
                item['invite_token'], item['asset_count'],
            )
            for item in invites.succeeded
        ]

        emails = dispatch_all(self.ctx.dispatcher, launch_jobs)
        invite_emails = dispatch_all(self.ctx.dispatcher, invite_jobs)

        return LaunchResult(
            campaign_id=self.ctx.campaign_id,
            records=records,
            invites=invites,
            emails=emails,
            invite_emails=invite_emails,
        )

"""
ReminderManager - reminders, escalations and auto-close

Everything here runs only when an explicit caller asks for it (the tasks
endpoint, or app.py --run-attestation-tasks). There is no timer.
"""

from dataclasses import dataclass, field
from typing import Dict, List

from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.buisness.attestation.batch import BatchResult
from app.buisness.attestation.clock import get_clock
from app.buisness.attestation.errors import AttestationValidationError
from app.buisness.attestation.fanout import NotificationJob, dispatch_all, stamp_sent
from app.buisness.attestation.invite_manager import InviteManager
from app.buisness.attestation.lookup import load_campaign
from app.buisness.attestation.narrator import AttestationNarrator
from app.buisness.attestation.overdue import days_since
from app.buisness.attestation.registry import AssetRegistry
from app.buisness.attestation.state_machine import CampaignStateMachine, RecordStateMachine
from app.buisness.core.audit_context import AuditContext
from app.data.attestation.campaign import AttestationCampaign
from app.data.attestation.pending_invite import AttestationPendingInvite
from app.data.attestation.record import AttestationRecord
from app.logger import get_logger
from app.services.notifications import CampaignSnapshot, NotificationKind, get_dispatcher

logger = get_logger("asset_attestation.buisness.attestation.reminder_manager")


@dataclass
class SweepSummary:
    results: Dict[str, BatchResult] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            name: {'succeeded': result.success_count, 'failed': result.failure_count}
            for name, result in self.results.items()
        }


class ReminderManager:

    def __init__(self, dispatcher=None, clock=None, registry=AssetRegistry):
        self.dispatcher = dispatcher or get_dispatcher()
        self.clock = clock or get_clock()
        self.registry = registry

    # ========== Manual ==========

    def bulk_remind(self, campaign_id: int, record_ids, actor) -> BatchResult:
        """
        Remind the owners of the given records.

        Records that do not exist or belong to another campaign are reported
        as failed; the rest are sent concurrently and stamped on success.
        """
        campaign = load_campaign(campaign_id)
        if not record_ids:
            raise AttestationValidationError("record_ids array is required")

        result = BatchResult()
        snapshot = CampaignSnapshot.from_campaign(campaign)
        jobs = []
        for record_id in record_ids:
            record = db.session.get(AttestationRecord, record_id)
            if record is None or record.campaign_id != campaign.id:
                result.add_failure(record_id, 'Record not found in this campaign')
                continue
            jobs.append(NotificationJob(record.id, NotificationKind.REMINDER, record.user.email, snapshot))

        sent = dispatch_all(self.dispatcher, jobs)
        stamp_sent(AttestationRecord, sent.succeeded, 'reminder_sent_at', self.clock.now())
        result.extend(sent)

        AuditContext.record(
            'bulk_reminder_sent', 'attestation_campaign', campaign.id, campaign.name,
            AttestationNarrator.bulk_reminder(campaign, result.success_count, result.failure_count), actor,
        )
        return result

    # ========== Sweeps ==========

    def _active_campaigns(self) -> List[AttestationCampaign]:
        return (
            AttestationCampaign.query
            .filter_by(status=CampaignStateMachine.ACTIVE)
            .order_by(AttestationCampaign.id)
            .all()
        )

    def _due(self, campaign: AttestationCampaign, threshold_days) -> bool:
        return days_since(campaign.start_date, self.clock.now()) >= (threshold_days or 0)

    def process_reminders(self) -> BatchResult:
        """Remind pending records once reminder_days have passed since start"""
        result = BatchResult()
        for campaign in self._active_campaigns():
            if not self._due(campaign, campaign.reminder_days):
                continue
            records = AttestationRecord.query.filter_by(
                campaign_id=campaign.id, status=RecordStateMachine.PENDING, reminder_sent_at=None
            ).all()
            snapshot = CampaignSnapshot.from_campaign(campaign)
            jobs = [
                NotificationJob(record.id, NotificationKind.REMINDER, record.user.email, snapshot)
                for record in records if record.user is not None
            ]
            sent = dispatch_all(self.dispatcher, jobs)
            stamp_sent(AttestationRecord, sent.succeeded, 'reminder_sent_at', self.clock.now())
            result.extend(sent)
        return result

    def process_escalations(self) -> BatchResult:
        """Escalate pending records to the owner's manager once escalation_days have passed"""
        result = BatchResult()
        for campaign in self._active_campaigns():
            if not self._due(campaign, campaign.escalation_days):
                continue
            records = AttestationRecord.query.filter_by(
                campaign_id=campaign.id, status=RecordStateMachine.PENDING, escalation_sent_at=None
            ).all()
            snapshot = CampaignSnapshot.from_campaign(campaign)
            jobs = []
            for record in records:
                user = record.user
                if user is None or not user.manager_email:
                    continue
                jobs.append(NotificationJob(
                    record.id, NotificationKind.ESCALATION, user.manager_email, snapshot,
                    {'employee_name': user.display_name, 'employee_email': user.email},
                ))
            sent = dispatch_all(self.dispatcher, jobs)
            stamp_sent(AttestationRecord, sent.succeeded, 'escalation_sent_at', self.clock.now())
            result.extend(sent)
        return result

    def _unconverted_invites(self, campaign_id: int, stamp_column: str) -> List[AttestationPendingInvite]:
        return (
            AttestationPendingInvite.query
            .filter_by(campaign_id=campaign_id, registered_at=None, **{stamp_column: None})
            .order_by(AttestationPendingInvite.id)
            .all()
        )

    def process_unregistered_reminders(self) -> BatchResult:
        """Remind unconverted invitees once unregistered_reminder_days have passed"""
        result = BatchResult()
        for campaign in self._active_campaigns():
            threshold = campaign.unregistered_reminder_days or AttestationCampaign.DEFAULT_UNREGISTERED_REMINDER_DAYS
            if not self._due(campaign, threshold):
                continue
            snapshot = CampaignSnapshot.from_campaign(campaign)
            jobs = [
                InviteManager.invite_job(
                    invite.id, snapshot, invite.employee_email, invite.employee_first_name,
                    invite.employee_last_name, invite.invite_token,
                    len(self.registry.assets_for_owner(invite.employee_email)),
                    kind=NotificationKind.UNREGISTERED_REMINDER,
                )
                for invite in self._unconverted_invites(campaign.id, 'reminder_sent_at')
            ]
            sent = dispatch_all(self.dispatcher, jobs)
            stamp_sent(AttestationPendingInvite, sent.succeeded, 'reminder_sent_at', self.clock.now())
            result.extend(sent)
        return result

    def process_unregistered_escalations(self) -> BatchResult:
        """
        Tell the manager recorded on an unregistered owner's assets once
        escalation_days have passed. Owners with no asset or no manager are skipped.
        """
        result = BatchResult()
        for campaign in self._active_campaigns():
            if not self._due(campaign, campaign.escalation_days):
                continue
            snapshot = CampaignSnapshot.from_campaign(campaign)
            jobs = []
            for invite in self._unconverted_invites(campaign.id, 'escalation_sent_at'):
                assets = self.registry.assets_for_owner(invite.employee_email)
                if not assets:
                    continue
                manager = self.registry.manager_for_owner(invite.employee_email)
                if manager is None:
                    continue
                manager_name = f"{manager['first_name'] or ''} {manager['last_name'] or ''}".strip()
                jobs.append(NotificationJob(
                    invite.id, NotificationKind.UNREGISTERED_ESCALATION, manager['email'], snapshot,
                    {
                        'manager_name': manager_name or None,
                        'employee_name': invite.employee_name,
                        'employee_email': invite.employee_email,
                        'asset_count': len(assets),
                    },
                ))
            sent = dispatch_all(self.dispatcher, jobs)
            stamp_sent(AttestationPendingInvite, sent.succeeded, 'escalation_sent_at', self.clock.now())
            result.extend(sent)
        return result

    def auto_close_expired_campaigns(self) -> BatchResult:
        """Complete active campaigns whose end_date has passed"""
        result = BatchResult()
        now = self.clock.now()
        campaigns = [c for c in self._active_campaigns() if c.end_date is not None and now > c.end_date]
        for campaign in campaigns:
            campaign_id = campaign.id
            try:
                closed = (
                    AttestationCampaign.query
                    .filter_by(id=campaign_id, status=CampaignStateMachine.ACTIVE)
                    .update({'status': CampaignStateMachine.COMPLETED}, synchronize_session=False)
                )
                db.session.commit()
            except SQLAlchemyError as e:
                db.session.rollback()
                logger.error(f"Failed to auto-close campaign {campaign_id}: {e}", exc_info=True)
                result.add_failure(campaign_id, e)
                continue
            if closed:
                result.add_success(campaign_id)
                logger.info(f"Campaign {campaign_id} auto-closed (expired)")
                AuditContext.record(
                    'auto_close', 'attestation_campaign', campaign_id, campaign.name,
                    AttestationNarrator.campaign_auto_closed(campaign), None,
                )
        return result

    def run_all(self) -> SweepSummary:
        """Run every sweep once; a failing sweep is logged and the rest still run"""
        summary = SweepSummary()
        sweeps = (
            ('reminders', self.process_reminders),
            ('escalations', self.process_escalations),
            ('unregistered_reminders', self.process_unregistered_reminders),
            ('unregistered_escalations', self.process_unregistered_escalations),
            ('auto_closed', self.auto_close_expired_campaigns),
        )
        for name, sweep in sweeps:
            try:
                summary.results[name] = sweep()
            except SQLAlchemyError as e:
                db.session.rollback()
                logger.error(f"Attestation sweep {name} failed: {e}", exc_info=True)
                failed = BatchResult()
                failed.add_failure(name, e)
                summary.results[name] = failed
        logger.info(f"Attestation sweeps finished: {summary.to_dict()}")
        return summary


"""
RecordContext - Domain Facade for one user's attestation record

Holds the record and its campaign and exposes the employee-facing actions
(attest an asset, stage a new asset, complete) and the administrative ones
(remind, escalate). Ownership is enforced here, not at the HTTP edge.
"""

from dataclasses import dataclass
from typing import List, Optional

from app import db
from app.buisness.attestation.batch import BatchResult
from app.buisness.attestation.clock import get_clock
from app.buisness.attestation.errors import (
    AttestationNotFoundError,
    AttestationValidationError,
    DependencyFailure,
    InvalidStateError,
)
from app.buisness.attestation.lookup import load_record
from app.buisness.attestation.narrator import AttestationNarrator
from app.buisness.attestation.overdue import OverdueStatus, overdue_for
from app.buisness.attestation.policies import RecordOwnershipPolicy
from app.buisness.attestation.promotion import NewAssetPromoter
from app.buisness.attestation.registry import AssetRegistry
from app.buisness.attestation.state_machine import CampaignStateMachine, RecordStateMachine
from app.buisness.attestation.validation import (
    check_email,
    is_blank,
    parse_date,
    parse_int,
    require_fields,
)
from app.buisness.core.audit_context import AuditContext
from app.data.attestation.attested_asset import AttestationAsset
from app.data.attestation.campaign import AttestationCampaign
from app.data.attestation.new_asset import AttestationNewAsset
from app.data.attestation.record import AttestationRecord
from app.data.core.asset_info.asset import Asset
from app.logger import get_logger
from app.services.notifications import CampaignSnapshot, NotificationKind, get_dispatcher

logger = get_logger("asset_attestation.buisness.attestation.record_context")

NEW_ASSET_FIELDS = (
    'asset_type', 'make', 'model', 'serial_number', 'asset_tag', 'company_id', 'notes',
    'employee_first_name', 'employee_last_name', 'employee_email',
    'manager_first_name', 'manager_last_name', 'manager_email',
    'issued_date', 'returned_date',
)


@dataclass
class CompletionResult:
    record_id: int
    promotion: BatchResult
    admin_notified: bool

    def to_dict(self) -> dict:
        return {
            'record_id': self.record_id,
            'promoted': self.promotion.success_count,
            'promotion_failed': self.promotion.failure_count,
            'promotion_failures': self.promotion.to_dict()['failed'],
            'admin_notified': self.admin_notified,
        }


def serialize_record(record: AttestationRecord, now) -> dict:
    data = record.to_dict()
    data.update(overdue_for(record, now).to_dict())
    return data


class RecordContext:
    """
    Domain Facade for the attestation record aggregate.

    Pattern: Domain Facade / Aggregate Controller
    """

    def __init__(self, record_id: Optional[int] = None, record: Optional[AttestationRecord] = None,
                 dispatcher=None, clock=None, registry=AssetRegistry):
        if record is not None:
            self.record = record
        elif record_id is not None:
            self.record = load_record(record_id)
        else:
            raise ValueError("Either record_id or record must be provided")

        self.record_id = self.record.id
        self.dispatcher = dispatcher or get_dispatcher()
        self.clock = clock or get_clock()
        self.registry = registry

    @classmethod
    def load(cls, record_id: int, **kwargs) -> 'RecordContext':
        return cls(record_id=record_id, **kwargs)

    @classmethod
    def from_record(cls, record: AttestationRecord, **kwargs) -> 'RecordContext':
        return cls(record=record, **kwargs)

    # ========== Read Model Helpers ==========

    @property
    def campaign(self) -> AttestationCampaign:
        return self.record.campaign

    @property
    def user(self):
        return self.record.user

    @property
    def overdue(self) -> OverdueStatus:
        return overdue_for(self.record, self.clock.now())

    def to_dict(self) -> dict:
        return serialize_record(self.record, self.clock.now())

    def detail(self, actor) -> dict:
        """
        Record, campaign, the owner's assets (limited to the target companies of
        a company-scoped campaign), ledger entries and staged entries.
        """
        RecordOwnershipPolicy.check_view(self.record, actor)
        campaign = self.campaign
        company_ids = None
        if campaign.target_type == AttestationCampaign.TARGET_COMPANIES:
            company_ids = campaign.target_company_ids
        assets = self.registry.assets_for_owner(self.user.email, company_ids)
        return {
            'record': self.to_dict(),
            'campaign': campaign.to_dict(),
            'assets': [asset.to_dict() for asset in assets],
            'attested_assets': [entry.to_dict() for entry in self.record.attested_assets],
            'new_assets': [entry.to_dict() for entry in self.record.new_assets],
        }

    @staticmethod
    def my_attestations(user, clock=None) -> List[dict]:
        """The user's records in active campaigns, newest campaign first"""
        now = (clock or get_clock()).now()
        records = (
            AttestationRecord.query
            .join(AttestationCampaign, AttestationRecord.campaign_id == AttestationCampaign.id)
            .filter(AttestationRecord.user_id == user.id)
            .filter(AttestationCampaign.status == CampaignStateMachine.ACTIVE)
            .order_by(AttestationCampaign.start_date.desc(), AttestationRecord.id)
            .all()
        )
        results = []
        for record in records:
            data = serialize_record(record, now)
            data['campaign'] = record.campaign.to_dict()
            results.append(data)
        return results

    # ========== Employee actions ==========

    def _require_open(self, actor) -> None:
        RecordOwnershipPolicy.check(self.record, actor)
        if self.campaign.status != CampaignStateMachine.ACTIVE:
            raise InvalidStateError("Campaign is not active")

    def _mark_started(self) -> None:
        if self.record.status == RecordStateMachine.PENDING:
            RecordStateMachine.validate_transition(self.record.status, RecordStateMachine.IN_PROGRESS)
            self.record.status = RecordStateMachine.IN_PROGRESS
            self.record.started_at = self.clock.now()

    def attest_asset(self, actor, asset_id: int, attested_status: str, notes: Optional[str] = None,
                     returned_date=None) -> AttestationAsset:
        """
        Append a ledger entry for one asset and sync a changed status to the registry.

        Raises:
            AttestationPermissionError: actor does not own the record or the asset
            AttestationNotFoundError: unknown asset
            AttestationValidationError: missing status, or 'returned' without a returned date
        """
        self._require_open(actor)

        asset = self.registry.get_asset(asset_id)
        if asset is None:
            raise AttestationNotFoundError("Asset not found")
        RecordOwnershipPolicy.check_asset(self.record, asset)
        if is_blank(attested_status):
            raise AttestationValidationError("Attested status is required")
        returned_on = parse_date(returned_date, 'returned_date')
        if attested_status == Asset.STATUS_RETURNED and returned_on is None:
            raise AttestationValidationError("Returned date is required when status is returned")

        previous_status = asset.status
        entry = AttestationAsset(
            attestation_record_id=self.record.id,
            asset_id=asset.id,
            attested_status=attested_status,
            previous_status=previous_status,
            notes=notes,
            returned_date=returned_on,
            attested_at=self.clock.now(),
        )
        db.session.add(entry)
        self._mark_started()

        status_changed = attested_status != previous_status
        if status_changed:
            self.registry.update_asset_status(
                asset, attested_status,
                returned_date=returned_on if attested_status == Asset.STATUS_RETURNED else None,
                user_id=actor.id,
            )
        db.session.commit()
        logger.info(f"Record {self.record.id}: asset {asset.id} attested as {attested_status}")

        if status_changed:
            AuditContext.record(
                'update', 'asset', asset.id, asset.label,
                AttestationNarrator.asset_attested(asset, previous_status, attested_status), actor,
            )
        return entry

    def add_new_asset(self, actor, descriptor: dict) -> AttestationNewAsset:
        """
        Stage an asset the owner holds but the registry does not know about.

        Raises:
            AttestationPermissionError: actor does not own the record
            AttestationValidationError: required fields missing or malformed
        """
        self._require_open(actor)

        require_fields(descriptor, ('asset_type', 'serial_number', 'asset_tag'),
                       "Asset type, serial number, and asset tag are required")
        require_fields(descriptor, ('employee_first_name', 'employee_last_name', 'employee_email'),
                       "Employee first name, last name, and email are required")
        require_fields(descriptor, ('company_id',), "Company is required")

        data = {key: descriptor.get(key) for key in NEW_ASSET_FIELDS}
        data['company_id'] = parse_int(descriptor['company_id'], 'company_id')
        if self.registry.get_company(data['company_id']) is None:
            raise AttestationValidationError("Company not found")
        data['employee_email'] = check_email(descriptor.get('employee_email'), 'employee_email')
        data['manager_email'] = check_email(descriptor.get('manager_email'), 'manager_email', required=False)
        data['issued_date'] = parse_date(descriptor.get('issued_date'), 'issued_date')
        data['returned_date'] = parse_date(descriptor.get('returned_date'), 'returned_date')
        data['attestation_record_id'] = self.record.id

        entry = AttestationNewAsset.from_dict(data)
        db.session.add(entry)
        self._mark_started()
        db.session.commit()

        AuditContext.record(
            'create', 'attestation_new_asset', self.record.id, entry.label,
            AttestationNarrator.new_asset_staged(entry), actor,
        )
        return entry

    def complete(self, actor) -> CompletionResult:
        """
        Promote staged assets, mark the record completed and tell the admins.

        Promotion failures are kept on the staged entries and do not block
        completion; completing again retries only the entries that failed.
        """
        self._require_open(actor)

        promotion = NewAssetPromoter(self.clock, self.registry).promote_all(self.record, actor)

        first_completion = self.record.status != RecordStateMachine.COMPLETED
        RecordStateMachine.validate_transition(self.record.status, RecordStateMachine.COMPLETED)
        self.record.status = RecordStateMachine.COMPLETED
        if first_completion or self.record.completed_at is None:
            self.record.completed_at = self.clock.now()
        db.session.commit()

        AuditContext.record(
            'complete', 'attestation_record', self.record.id, self.campaign.name,
            AttestationNarrator.record_completed(self.record, promotion.success_count, promotion.failure_count),
            actor,
        )

        admin_notified = self._notify_admins() if first_completion else False
        return CompletionResult(record_id=self.record.id, promotion=promotion, admin_notified=admin_notified)

    def _notify_admins(self) -> bool:
        admin_emails = self.registry.admin_emails()
        if not admin_emails:
            return False
        user = self.user
        outcome = self.dispatcher.send(
            NotificationKind.COMPLETION_ADMIN, admin_emails, CampaignSnapshot.from_campaign(self.campaign),
            employee_name=user.display_name, employee_email=user.email,
        )
        if not outcome.success:
            logger.error(f"Failed to notify admins of completed record {self.record.id}: {outcome.error}")
        return outcome.success

    # ========== Administrative actions ==========

    def remind(self, actor) -> None:
        """
        Send a reminder to the record's owner and stamp reminder_sent_at.

        Raises:
            DependencyFailure: the reminder could not be sent
        """
        user, campaign = self.user, self.campaign
        outcome = self.dispatcher.send(NotificationKind.REMINDER, user.email, CampaignSnapshot.from_campaign(campaign))
        if not outcome.success:
            raise DependencyFailure(outcome.error or 'Failed to send reminder')

        self.record.reminder_sent_at = self.clock.now()
        db.session.commit()
        AuditContext.record(
            'reminder_sent', 'attestation_record', self.record.id, f"{user.email} - {campaign.name}",
            AttestationNarrator.reminder_sent(user.email), actor,
        )

    def escalate(self, actor, custom_message: Optional[str] = None) -> None:
        """
        Notify the owner's manager and stamp escalation_sent_at.

        Raises:
            AttestationValidationError: the owner has no manager
            DependencyFailure: the escalation could not be sent
        """
        user, campaign = self.user, self.campaign
        if is_blank(user.manager_email):
            raise AttestationValidationError("User does not have a manager assigned")

        outcome = self.dispatcher.send(
            NotificationKind.ESCALATION, user.manager_email, CampaignSnapshot.from_campaign(campaign),
            employee_name=user.display_name, employee_email=user.email,
            custom_message=custom_message or None,
        )
        if not outcome.success:
            raise DependencyFailure(outcome.error or 'Failed to send escalation')

        self.record.escalation_sent_at = self.clock.now()
        db.session.commit()
        AuditContext.record(
            'escalation_sent', 'attestation_record', self.record.id, f"{user.email} - {campaign.name}",
            AttestationNarrator.escalation_sent(user.email, user.manager_email, custom_message), actor,
        )

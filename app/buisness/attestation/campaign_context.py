"""
CampaignContext - Domain Facade for the attestation campaign aggregate

Acts as the aggregate controller and provides an intention-revealing interface
for campaign operations. Delegates the launch fan-out to LaunchManager and
invite handling to InviteManager.
"""

from typing import Any, Dict, List, Optional, Set

from sqlalchemy import func

from app import db
from app.buisness.attestation.clock import get_clock
from app.buisness.attestation.errors import AttestationValidationError, InvalidStateError
from app.buisness.attestation.invite_manager import InviteManager
from app.buisness.attestation.launch_manager import LaunchManager, LaunchResult
from app.buisness.attestation.lookup import load_campaign
from app.buisness.attestation.narrator import AttestationNarrator
from app.buisness.attestation.overdue import overdue_for
from app.buisness.attestation.policies import CampaignEditLockPolicy
from app.buisness.attestation.registry import AssetRegistry
from app.buisness.attestation.state_machine import CampaignStateMachine, RecordStateMachine
from app.buisness.attestation.targeting import TargetingResolver
from app.buisness.attestation.validation import (
    is_blank,
    parse_datetime,
    parse_id_list,
    parse_int,
)
from app.buisness.core.audit_context import AuditContext
from app.data.attestation.campaign import AttestationCampaign
from app.data.attestation.pending_invite import AttestationPendingInvite
from app.logger import get_logger
from app.services.notifications import get_dispatcher

logger = get_logger("asset_attestation.buisness.attestation.campaign_context")

SCALAR_FIELDS = ('name', 'description', 'start_date', 'end_date',
                 'reminder_days', 'escalation_days', 'unregistered_reminder_days')
TARGETING_FIELDS = ('target_type', 'target_user_ids', 'target_company_ids')


def _clean_scalars(data: Dict[str, Any]) -> Dict[str, Any]:
    """Coerce the scalar campaign fields present in data"""
    cleaned = {}
    if 'name' in data:
        if is_blank(data['name']):
            raise AttestationValidationError("Campaign name is required")
        cleaned['name'] = str(data['name']).strip()
    if 'description' in data:
        cleaned['description'] = data['description']
    if 'start_date' in data:
        start = parse_datetime(data['start_date'], 'start_date')
        if start is None:
            raise AttestationValidationError("Campaign start date is required")
        cleaned['start_date'] = start
    if 'end_date' in data:
        cleaned['end_date'] = parse_datetime(data['end_date'], 'end_date')
    for key in ('reminder_days', 'escalation_days', 'unregistered_reminder_days'):
        if key in data and data[key] is not None:
            cleaned[key] = parse_int(data[key], key, minimum=0)
    return cleaned


def _clean_targeting(target_type, user_ids, company_ids):
    if target_type not in AttestationCampaign.TARGET_TYPES:
        raise AttestationValidationError('Invalid target_type. Must be "all", "selected", or "companies"')
    user_ids = parse_id_list(user_ids, 'target_user_ids')
    company_ids = parse_id_list(company_ids, 'target_company_ids')
    if target_type == AttestationCampaign.TARGET_SELECTED and not user_ids:
        raise AttestationValidationError('target_user_ids is required when target_type is "selected"')
    if target_type == AttestationCampaign.TARGET_COMPANIES and not company_ids:
        raise AttestationValidationError('target_company_ids is required when target_type is "companies"')
    return target_type, user_ids, company_ids


class CampaignContext:
    """
    Domain Facade for attestation campaigns.

    Pattern: Domain Facade / Aggregate Controller
    """

    def __init__(self, campaign_id: Optional[int] = None, campaign: Optional[AttestationCampaign] = None,
                 dispatcher=None, clock=None, registry=AssetRegistry, resolver: Optional[TargetingResolver] = None):
        if campaign is not None:
            self.campaign = campaign
        elif campaign_id is not None:
            self.campaign = load_campaign(campaign_id)
        else:
            raise ValueError("Either campaign_id or campaign must be provided")

        self.campaign_id = self.campaign.id
        self.dispatcher = dispatcher or get_dispatcher()
        self.clock = clock or get_clock()
        self.registry = registry
        self.resolver = resolver or TargetingResolver(registry)

        self.invite_manager = InviteManager(self.dispatcher, self.clock, registry)
        self.launch_manager = LaunchManager(self)

    @classmethod
    def load(cls, campaign_id: int, **kwargs) -> 'CampaignContext':
        return cls(campaign_id=campaign_id, **kwargs)

    @classmethod
    def from_campaign(cls, campaign: AttestationCampaign, **kwargs) -> 'CampaignContext':
        return cls(campaign=campaign, **kwargs)

    # ========== Creation ==========

    @classmethod
    def create(cls, data: Dict[str, Any], actor, **kwargs) -> 'CampaignContext':
        """
        Create a draft campaign.

        Args:
            data: name, start_date (required), description, end_date, thresholds,
                target_type and the id list the mode needs
            actor: Creating user

        Raises:
            AttestationValidationError: Missing or malformed fields
        """
        if is_blank(data.get('name')) or is_blank(data.get('start_date')):
            raise AttestationValidationError("Campaign name and start date are required")

        fields = _clean_scalars({key: data[key] for key in SCALAR_FIELDS if key in data})
        target_type, user_ids, company_ids = _clean_targeting(
            data.get('target_type') or AttestationCampaign.TARGET_ALL,
            data.get('target_user_ids'),
            data.get('target_company_ids'),
        )

        campaign = AttestationCampaign(
            status=CampaignStateMachine.DRAFT,
            created_by_id=actor.id,
            updated_by_id=actor.id,
            **fields,
        )
        campaign.set_targets(target_type, user_ids, company_ids)
        db.session.add(campaign)
        db.session.commit()
        logger.info(f"Created attestation campaign {campaign.id} ({target_type})")

        AuditContext.record(
            'create', 'attestation_campaign', campaign.id, campaign.name,
            AttestationNarrator.campaign_created(campaign), actor,
        )
        return cls(campaign=campaign, **kwargs)

    # ========== Read Model Helpers ==========

    def to_dict(self) -> dict:
        return self.campaign.to_dict()

    def stats(self) -> dict:
        now = self.clock.now()
        records = self.campaign.records
        return {
            'total': len(records),
            'completed': sum(1 for r in records if r.status == RecordStateMachine.COMPLETED),
            'in_progress': sum(1 for r in records if r.status == RecordStateMachine.IN_PROGRESS),
            'pending': sum(1 for r in records if r.status == RecordStateMachine.PENDING),
            'reminders_sent': sum(1 for r in records if r.reminder_sent_at),
            'escalations_sent': sum(1 for r in records if r.escalation_sent_at),
            'overdue': sum(1 for r in records if overdue_for(r, now).is_overdue),
        }

    def dashboard(self) -> List[dict]:
        """Per-record rows with owner details and derived overdue fields"""
        now = self.clock.now()
        rows = []
        for record in self.campaign.records:
            user = record.user
            if user is None:
                continue
            row = record.to_dict()
            row.update(overdue_for(record, now).to_dict())
            row.update({
                'user_email': user.email,
                'user_name': user.display_name,
                'user_role': user.role,
                'manager_email': user.manager_email or None,
                'companies': self.registry.company_names_for_owner(user.email),
            })
            rows.append(row)
        return rows

    @staticmethod
    def list_campaigns() -> List[dict]:
        """All campaigns, newest first, with their unresolved invite counts"""
        counts = dict(
            db.session.query(AttestationPendingInvite.campaign_id, func.count(AttestationPendingInvite.id))
            .filter(AttestationPendingInvite.registered_at.is_(None))
            .group_by(AttestationPendingInvite.campaign_id)
            .all()
        )
        campaigns = AttestationCampaign.query.order_by(
            AttestationCampaign.created_at.desc(), AttestationCampaign.id.desc()
        ).all()
        results = []
        for campaign in campaigns:
            data = campaign.to_dict()
            data['pending_invites_count'] = counts.get(campaign.id, 0)
            results.append(data)
        return results

    # ========== Updates ==========

    def update(self, patch: Dict[str, Any], actor) -> Set[str]:
        """
        Apply a field patch.

        Draft campaigns accept every field except status; active campaigns
        accept descriptive fields, thresholds and targeting (targeting changes
        do not touch records or invites already created). Completed and
        cancelled campaigns are immutable.

        Returns:
            set: Names of the fields that changed
        """
        campaign = self.campaign
        CampaignEditLockPolicy.check(campaign, patch)

        changed = campaign.update_from_dict(
            _clean_scalars(patch), user_id=actor.id,
            allowed_fields=CampaignEditLockPolicy.get_editable_fields(campaign),
        )

        if any(key in patch for key in TARGETING_FIELDS):
            before = (campaign.target_type, campaign.target_user_ids, campaign.target_company_ids)
            target_type = patch.get('target_type') or campaign.target_type
            user_ids = patch['target_user_ids'] if 'target_user_ids' in patch else campaign.target_user_ids
            company_ids = patch['target_company_ids'] if 'target_company_ids' in patch else campaign.target_company_ids
            target_type, user_ids, company_ids = _clean_targeting(target_type, user_ids, company_ids)
            campaign.set_targets(target_type, user_ids, company_ids)
            after = (campaign.target_type, campaign.target_user_ids, campaign.target_company_ids)
            changed.update(name for name, old, new in zip(TARGETING_FIELDS, before, after) if old != new)
            if changed:
                campaign.updated_by_id = actor.id

        if not changed:
            return changed

        db.session.commit()
        if campaign.status == CampaignStateMachine.ACTIVE and changed & set(TARGETING_FIELDS):
            logger.info(f"Targeting of active campaign {campaign.id} changed; existing records are kept")

        AuditContext.record(
            'update', 'attestation_campaign', campaign.id, campaign.name,
            AttestationNarrator.campaign_updated(campaign, changed), actor,
        )
        return changed

    # ========== Transitions ==========

    def start(self, actor) -> LaunchResult:
        """
        Start a draft campaign.

        Targets are resolved before anything is written; the draft → active
        claim happens next, and only the caller that wins it fans out.

        Raises:
            InvalidStateError: The campaign is not a draft, or another caller started it first
            TargetingError: The targeting rule resolves to nothing usable
        """
        if self.campaign.status != CampaignStateMachine.DRAFT:
            raise InvalidStateError("Campaign has already been started")

        targets = self.resolver.resolve_campaign(self.campaign)
        self.launch_manager.claim_activation(actor)
        result = self.launch_manager.launch(targets, actor)

        AuditContext.record(
            'start', 'attestation_campaign', self.campaign_id, self.campaign.name,
            AttestationNarrator.campaign_started(self.campaign, result), actor,
        )
        return result

    def _transition(self, to_status: str, action: str, actor, reason: Optional[str] = None) -> None:
        from_status = self.campaign.status
        CampaignStateMachine.validate_transition(from_status, to_status)

        now = self.clock.now()
        moved = (
            AttestationCampaign.query
            .filter_by(id=self.campaign_id, status=from_status)
            .update({'status': to_status, 'updated_at': now, 'updated_by_id': getattr(actor, 'id', None)},
                    synchronize_session=False)
        )
        if moved != 1:
            db.session.rollback()
            raise InvalidStateError(f"Campaign is no longer {from_status}")
        db.session.commit()
        logger.info(f"Campaign {self.campaign_id}: {from_status} → {to_status}")

        AuditContext.record(
            action, 'attestation_campaign', self.campaign_id, self.campaign.name,
            AttestationNarrator.campaign_status_changed(self.campaign, from_status, to_status, reason), actor,
        )

    def cancel(self, actor, reason: Optional[str] = None) -> None:
        """Active → cancelled. Records are left as they are."""
        self._transition(CampaignStateMachine.CANCELLED, 'cancel', actor, reason)

    def complete(self, actor) -> None:
        """Active → completed. Records are left as they are."""
        self._transition(CampaignStateMachine.COMPLETED, 'complete', actor)

    def delete(self, actor) -> None:
        """Delete the campaign with its targets, records, invites, ledger and staged assets"""
        campaign = self.campaign
        campaign_id, detail = campaign.id, AttestationNarrator.campaign_deleted(campaign)
        name = campaign.name
        db.session.delete(campaign)
        db.session.commit()
        logger.info(f"Deleted attestation campaign {campaign_id}")
        AuditContext.record('delete', 'attestation_campaign', campaign_id, name, detail, actor)

"""
Campaign Edit Lock Policy

Decides which campaign fields a patch may touch in each status.

Field Categories:
- ALWAYS_LOCKED: Never patched directly (status moves only through transitions)
- DRAFT_ONLY: Editable while the campaign is a draft (start_date is reset on start anyway)
- EDITABLE_WHILE_ACTIVE: Descriptive fields, schedule thresholds and targeting;
  targeting changes on an active campaign do not touch existing records or invites
- Completed and cancelled campaigns are immutable
"""

from typing import Any, Dict, Set

from app.buisness.attestation.errors import AttestationValidationError, InvalidStateError
from app.buisness.attestation.state_machine import CampaignStateMachine


class CampaignEditLockPolicy:

    ALWAYS_LOCKED: Set[str] = {
        'id',
        'status',
        'created_by_id',
        'created_at',
    }

    DRAFT_ONLY: Set[str] = {
        'start_date',
    }

    EDITABLE_WHILE_ACTIVE: Set[str] = {
        'name',
        'description',
        'end_date',
        'reminder_days',
        'escalation_days',
        'unregistered_reminder_days',
        'target_type',
        'target_user_ids',
        'target_company_ids',
    }

    @classmethod
    def check(cls, campaign, updates: Dict[str, Any]) -> None:
        """
        Check if updates are allowed for the campaign's current status.

        Raises:
            InvalidStateError: Campaign is completed or cancelled
            AttestationValidationError: A locked field is in the patch
        """
        if CampaignStateMachine.is_terminal(campaign.status):
            raise InvalidStateError(f"Cannot modify a {campaign.status} campaign")

        fields = set(updates.keys())
        locked = fields & cls.ALWAYS_LOCKED
        if locked:
            raise AttestationValidationError(
                f"Cannot modify locked campaign fields: {', '.join(sorted(locked))}"
            )

        if campaign.status == CampaignStateMachine.ACTIVE:
            draft_only = fields & cls.DRAFT_ONLY
            if draft_only:
                raise InvalidStateError(
                    f"Cannot modify {', '.join(sorted(draft_only))} after the campaign has started"
                )

    @classmethod
    def get_editable_fields(cls, campaign) -> Set[str]:
        if CampaignStateMachine.is_terminal(campaign.status):
            return set()
        editable = cls.EDITABLE_WHILE_ACTIVE.copy()
        if campaign.status == CampaignStateMachine.DRAFT:
            editable.update(cls.DRAFT_ONLY)
        return editable

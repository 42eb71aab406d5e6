"""
Policy classes for attestation business rules

Policies are composable validation rules that enforce business invariants.
They raise domain exceptions when violations are detected.
"""

from app.buisness.attestation.policies.campaign_edit_lock import CampaignEditLockPolicy
from app.buisness.attestation.policies.record_ownership import RecordOwnershipPolicy

__all__ = [
    'CampaignEditLockPolicy',
    'RecordOwnershipPolicy',
]

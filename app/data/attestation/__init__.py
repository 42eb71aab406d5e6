"""
Attestation models: campaigns and their targeting lists, per-user records,
pending invites for unregistered owners, the attested-asset ledger and the
new-asset staging list.
"""

from .campaign import AttestationCampaign, CampaignTargetUser, CampaignTargetCompany
from .record import AttestationRecord
from .pending_invite import AttestationPendingInvite
from .attested_asset import AttestationAsset
from .new_asset import AttestationNewAsset

__all__ = [
    'AttestationCampaign',
    'CampaignTargetUser',
    'CampaignTargetCompany',
    'AttestationRecord',
    'AttestationPendingInvite',
    'AttestationAsset',
    'AttestationNewAsset',
]

"""
Loaders that turn missing attestation rows into AttestationNotFoundError
"""

from app import db
from app.buisness.attestation.errors import AttestationNotFoundError
from app.data.attestation.campaign import AttestationCampaign
from app.data.attestation.pending_invite import AttestationPendingInvite
from app.data.attestation.record import AttestationRecord


def load_campaign(campaign_id) -> AttestationCampaign:
    campaign = db.session.get(AttestationCampaign, campaign_id) if campaign_id is not None else None
    if campaign is None:
        raise AttestationNotFoundError("Campaign not found")
    return campaign


def load_record(record_id) -> AttestationRecord:
    record = db.session.get(AttestationRecord, record_id) if record_id is not None else None
    if record is None:
        raise AttestationNotFoundError("Attestation record not found")
    return record


def load_invite(invite_id) -> AttestationPendingInvite:
    invite = db.session.get(AttestationPendingInvite, invite_id) if invite_id is not None else None
    if invite is None:
        raise AttestationNotFoundError("Invite not found")
    return invite

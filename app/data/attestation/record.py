from app import db
from app.data.core.user_created_base import UserCreatedBase


class AttestationRecord(UserCreatedBase):
    """One user's attestation work item within a campaign"""
    __tablename__ = 'attestation_records'
    __table_args__ = (
        db.UniqueConstraint('campaign_id', 'user_id', name='uq_attestation_record_campaign_user'),
    )

    campaign_id = db.Column(db.Integer, db.ForeignKey('attestation_campaigns.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False, default='pending')
    started_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    reminder_sent_at = db.Column(db.DateTime, nullable=True)
    escalation_sent_at = db.Column(db.DateTime, nullable=True)

    # Relationships
    campaign = db.relationship('AttestationCampaign', back_populates='records')
    user = db.relationship('User', foreign_keys=[user_id])
    attested_assets = db.relationship(
        'AttestationAsset', back_populates='record', cascade='all, delete-orphan',
        order_by='AttestationAsset.id'
    )
    new_assets = db.relationship(
        'AttestationNewAsset', back_populates='record', cascade='all, delete-orphan',
        order_by='AttestationNewAsset.id'
    )

    def __repr__(self):
        return f'<AttestationRecord campaign={self.campaign_id} user={self.user_id} ({self.status})>'

from app import db
from datetime import datetime
from app.buisness.core.data_insertion_mixin import DataInsertionMixin


class AttestationPendingInvite(db.Model, DataInsertionMixin):
    """Placeholder for an asset owner with no account, converted at first login"""
    __tablename__ = 'attestation_pending_invites'
    __table_args__ = (
        db.UniqueConstraint('campaign_id', 'employee_email', name='uq_attestation_invite_campaign_email'),
    )

    id = db.Column(db.Integer, primary_key=True)
    campaign_id = db.Column(db.Integer, db.ForeignKey('attestation_campaigns.id', ondelete='CASCADE'), nullable=False, index=True)
    employee_email = db.Column(db.String(120), nullable=False, index=True)
    employee_first_name = db.Column(db.String(80), nullable=True)
    employee_last_name = db.Column(db.String(80), nullable=True)
    invite_token = db.Column(db.String(128), unique=True, nullable=False)
    invite_sent_at = db.Column(db.DateTime, nullable=True)
    registered_at = db.Column(db.DateTime, nullable=True)
    converted_record_id = db.Column(db.Integer, db.ForeignKey('attestation_records.id', ondelete='SET NULL'), nullable=True)
    reminder_sent_at = db.Column(db.DateTime, nullable=True)
    escalation_sent_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    campaign = db.relationship('AttestationCampaign', back_populates='pending_invites')
    converted_record = db.relationship('AttestationRecord', foreign_keys=[converted_record_id])

    @property
    def is_converted(self):
        return self.registered_at is not None

    @property
    def employee_name(self):
        name = f"{self.employee_first_name or ''} {self.employee_last_name or ''}".strip()
        return name or self.employee_email

    def __repr__(self):
        state = 'converted' if self.is_converted else 'pending'
        return f'<AttestationPendingInvite {self.employee_email} campaign={self.campaign_id} ({state})>'

from app import db
from app.data.core.user_created_base import UserCreatedBase


class CampaignTargetUser(db.Model):
    """Membership row for target_type='selected' campaigns"""
    __tablename__ = 'attestation_campaign_target_users'

    # No FK on user_id: a user deleted after authoring stays listed and is
    # dropped when the campaign is started.
    campaign_id = db.Column(db.Integer, db.ForeignKey('attestation_campaigns.id', ondelete='CASCADE'), primary_key=True)
    user_id = db.Column(db.Integer, primary_key=True, index=True)


class CampaignTargetCompany(db.Model):
    """Membership row for target_type='companies' campaigns"""
    __tablename__ = 'attestation_campaign_target_companies'

    campaign_id = db.Column(db.Integer, db.ForeignKey('attestation_campaigns.id', ondelete='CASCADE'), primary_key=True)
    company_id = db.Column(db.Integer, primary_key=True, index=True)


class AttestationCampaign(UserCreatedBase):
    __tablename__ = 'attestation_campaigns'

    TARGET_ALL = 'all'
    TARGET_SELECTED = 'selected'
    TARGET_COMPANIES = 'companies'
    TARGET_TYPES = (TARGET_ALL, TARGET_SELECTED, TARGET_COMPANIES)

    DEFAULT_REMINDER_DAYS = 7
    DEFAULT_ESCALATION_DAYS = 10
    DEFAULT_UNREGISTERED_REMINDER_DAYS = 7

    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=True)
    status = db.Column(db.String(20), nullable=False, default='draft', index=True)
    reminder_days = db.Column(db.Integer, nullable=False, default=DEFAULT_REMINDER_DAYS)
    escalation_days = db.Column(db.Integer, nullable=False, default=DEFAULT_ESCALATION_DAYS)
    unregistered_reminder_days = db.Column(db.Integer, nullable=False, default=DEFAULT_UNREGISTERED_REMINDER_DAYS)
    target_type = db.Column(db.String(20), nullable=False, default=TARGET_ALL)

    # Relationships
    target_users = db.relationship(
        'CampaignTargetUser', cascade='all, delete-orphan',
        order_by='CampaignTargetUser.user_id'
    )
    target_companies = db.relationship(
        'CampaignTargetCompany', cascade='all, delete-orphan',
        order_by='CampaignTargetCompany.company_id'
    )
    records = db.relationship(
        'AttestationRecord', back_populates='campaign', cascade='all, delete-orphan',
        order_by='AttestationRecord.id'
    )
    pending_invites = db.relationship(
        'AttestationPendingInvite', back_populates='campaign', cascade='all, delete-orphan',
        order_by='AttestationPendingInvite.id'
    )

    @property
    def target_user_ids(self):
        return [row.user_id for row in self.target_users]

    @property
    def target_company_ids(self):
        return [row.company_id for row in self.target_companies]

    def set_targets(self, target_type, user_ids=None, company_ids=None):
        """
        Replace the targeting rule. Only the list matching target_type is kept,
        the other one is cleared.
        """
        self.target_type = target_type
        user_ids = sorted(set(user_ids or [])) if target_type == self.TARGET_SELECTED else []
        company_ids = sorted(set(company_ids or [])) if target_type == self.TARGET_COMPANIES else []
        existing_users = {row.user_id: row for row in self.target_users}
        existing_companies = {row.company_id: row for row in self.target_companies}
        self.target_users = [existing_users.get(uid) or CampaignTargetUser(user_id=uid) for uid in user_ids]
        self.target_companies = [
            existing_companies.get(cid) or CampaignTargetCompany(company_id=cid) for cid in company_ids
        ]

    def to_dict(self, include_audit_fields=True, exclude=None):
        data = super().to_dict(include_audit_fields=include_audit_fields, exclude=exclude)
        data['target_user_ids'] = self.target_user_ids if self.target_type == self.TARGET_SELECTED else None
        data['target_company_ids'] = self.target_company_ids if self.target_type == self.TARGET_COMPANIES else None
        return data

    def __repr__(self):
        return f'<AttestationCampaign {self.name} ({self.status})>'

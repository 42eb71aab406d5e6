from app import db
from datetime import datetime
from app.buisness.core.data_insertion_mixin import DataInsertionMixin


class AttestationNewAsset(db.Model, DataInsertionMixin):
    """
    Asset declared by the owner during attestation, staged until the record
    is completed. promoted_at/promoted_asset_id mark a successful promotion;
    promotion_error keeps the last failure so the entry can be retried.
    """
    __tablename__ = 'attestation_new_assets'

    id = db.Column(db.Integer, primary_key=True)
    attestation_record_id = db.Column(db.Integer, db.ForeignKey('attestation_records.id', ondelete='CASCADE'), nullable=False, index=True)
    asset_type = db.Column(db.String(100), nullable=False)
    make = db.Column(db.String(100), nullable=True)
    model = db.Column(db.String(100), nullable=True)
    serial_number = db.Column(db.String(100), nullable=False)
    asset_tag = db.Column(db.String(100), nullable=False)
    company_id = db.Column(db.Integer, db.ForeignKey('companies.id'), nullable=False)
    notes = db.Column(db.Text, nullable=True)
    employee_first_name = db.Column(db.String(80), nullable=False)
    employee_last_name = db.Column(db.String(80), nullable=False)
    employee_email = db.Column(db.String(120), nullable=False)
    manager_first_name = db.Column(db.String(80), nullable=True)
    manager_last_name = db.Column(db.String(80), nullable=True)
    manager_email = db.Column(db.String(120), nullable=True)
    issued_date = db.Column(db.Date, nullable=True)
    returned_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    promoted_at = db.Column(db.DateTime, nullable=True)
    promoted_asset_id = db.Column(db.Integer, db.ForeignKey('assets.id', ondelete='SET NULL'), nullable=True)
    promotion_error = db.Column(db.Text, nullable=True)

    # Relationships
    record = db.relationship('AttestationRecord', back_populates='new_assets')
    promoted_asset = db.relationship('Asset', foreign_keys=[promoted_asset_id])

    @property
    def is_promoted(self):
        return self.promoted_at is not None

    @property
    def label(self):
        return f"{self.asset_type} - {self.serial_number}"

    def __repr__(self):
        return f'<AttestationNewAsset {self.label}>'

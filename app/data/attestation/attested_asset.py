from app import db
from datetime import datetime
from sqlalchemy import event
from app.buisness.core.data_insertion_mixin import DataInsertionMixin


class AttestationAsset(db.Model, DataInsertionMixin):
    """Ledger entry: one attestation decision for one asset. Never updated."""
    __tablename__ = 'attestation_assets'

    id = db.Column(db.Integer, primary_key=True)
    attestation_record_id = db.Column(db.Integer, db.ForeignKey('attestation_records.id', ondelete='CASCADE'), nullable=False, index=True)
    asset_id = db.Column(db.Integer, db.ForeignKey('assets.id'), nullable=False, index=True)
    attested_status = db.Column(db.String(50), nullable=False)
    previous_status = db.Column(db.String(50), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    returned_date = db.Column(db.Date, nullable=True)
    attested_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    record = db.relationship('AttestationRecord', back_populates='attested_assets')
    asset = db.relationship('Asset')

    def __repr__(self):
        return f'<AttestationAsset asset={self.asset_id} {self.previous_status} -> {self.attested_status}>'


@event.listens_for(AttestationAsset, 'before_update')
def _ledger_entries_are_immutable(mapper, connection, target):
    raise ValueError(f"Attestation ledger entry {target.id} is immutable once written")

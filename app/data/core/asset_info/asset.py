from app.data.core.user_created_base import UserCreatedBase
from app.logger import get_logger
from app import db
from sqlalchemy import func

logger = get_logger("asset_attestation.models.core")


class Asset(UserCreatedBase):
    __tablename__ = 'assets'

    STATUS_ACTIVE = 'active'
    STATUS_RETURNED = 'returned'

    employee_first_name = db.Column(db.String(80), nullable=True)
    employee_last_name = db.Column(db.String(80), nullable=True)
    employee_email = db.Column(db.String(120), nullable=True, index=True)
    manager_first_name = db.Column(db.String(80), nullable=True)
    manager_last_name = db.Column(db.String(80), nullable=True)
    manager_email = db.Column(db.String(120), nullable=True)
    company_id = db.Column(db.Integer, db.ForeignKey('companies.id'), nullable=True)
    asset_type = db.Column(db.String(100), nullable=False)
    make = db.Column(db.String(100), nullable=True)
    model = db.Column(db.String(100), nullable=True)
    serial_number = db.Column(db.String(100), unique=True, nullable=False)
    asset_tag = db.Column(db.String(100), nullable=True)
    status = db.Column(db.String(50), default=STATUS_ACTIVE)
    issued_date = db.Column(db.Date, nullable=True)
    returned_date = db.Column(db.Date, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    # Relationships
    company = db.relationship('Company')

    @classmethod
    def owned_by(cls, email):
        """Query for assets whose owner email matches (case-insensitive)"""
        return cls.query.filter(func.lower(cls.employee_email) == (email or '').lower())

    @property
    def label(self):
        return self.asset_tag or self.serial_number or 'Unknown'

    def __repr__(self):
        return f'<Asset {self.asset_type} ({self.serial_number})>'

from app import db
from datetime import datetime
from app.buisness.core.data_insertion_mixin import DataInsertionMixin


class AuditLog(db.Model, DataInsertionMixin):
    """Append-only trail of state-changing operations"""
    __tablename__ = 'audit_logs'

    id = db.Column(db.Integer, primary_key=True)
    action = db.Column(db.String(50), nullable=False)
    entity_type = db.Column(db.String(50), nullable=False)
    entity_id = db.Column(db.String(100), nullable=True)
    entity_name = db.Column(db.String(255), nullable=True)
    details = db.Column(db.Text, nullable=True)
    user_email = db.Column(db.String(120), nullable=True)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<AuditLog {self.action} {self.entity_type}:{self.entity_id}>'

    @classmethod
    def log(cls, action, entity_type, entity_id, entity_name, details, user_email=None):
        """
        Create and flush a new audit entry

        Returns:
            int: The ID of the created entry
        """
        entry = cls(
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            entity_name=entity_name,
            details=details,
            user_email=user_email,
        )
        db.session.add(entry)
        db.session.flush()  # Get the ID without committing
        return entry.id

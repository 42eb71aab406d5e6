from app import db, login_manager
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from datetime import datetime
from app.buisness.core.data_insertion_mixin import DataInsertionMixin


class User(UserMixin, DataInsertionMixin, db.Model):
    __tablename__ = 'users'

    ROLES = ('employee', 'manager', 'attestation_coordinator', 'admin')
    
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    first_name = db.Column(db.String(80), nullable=True)
    last_name = db.Column(db.String(80), nullable=True)
    password_hash = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(40), nullable=False, default='employee')
    manager_first_name = db.Column(db.String(80), nullable=True)
    manager_last_name = db.Column(db.String(80), nullable=True)
    manager_email = db.Column(db.String(120), nullable=True)
    is_active = db.Column(db.Boolean, default=True)
    last_login = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    def set_password(self, password):
        self.password_hash = generate_password_hash(password)
    
    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def has_role(self, *roles):
        return self.role in roles

    @property
    def display_name(self):
        """First and last name, falling back to the email address"""
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or self.email
    
    def __repr__(self):
        return f'<User {self.email}>'

@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))

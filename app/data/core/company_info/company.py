from app import db
from app.data.core.user_created_base import UserCreatedBase


class Company(UserCreatedBase):
    __tablename__ = 'companies'

    name = db.Column(db.String(200), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)

    def __repr__(self):
        return f'<Company {self.name}>'

"""
User model.

Authentication lives outside this service; a User row only gives investments,
reviews and listings an owner, and dates signups for the dashboards.
"""
from extensions import db
from datetime import datetime, timezone


class UserRole:
    INVESTOR = 'investor'
    OWNER = 'owner'

    ALL = (INVESTOR, OWNER)


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=UserRole.INVESTOR)  # 'investor' | 'owner'
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc).replace(tzinfo=None), nullable=False)

    # Relationships
    investments = db.relationship('Investment', back_populates='investor', lazy='dynamic')
    properties = db.relationship('Property', back_populates='owner', lazy='dynamic')

    def __repr__(self):
        return f'<User {self.email} ({self.role})>'

"""
User Model

Team members allowed to use the app. Authentication happens at the
identity provider; this table only carries the whitelist and profile.
"""

from .base import db, utcnow


class User(db.Model):
    """Whitelisted team member or administrator."""
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False, default='')
    role = db.Column(db.String(20), nullable=False, default='member')  # 'admin' or 'member'
    phone = db.Column(db.String(20), nullable=True)
    whitelisted = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    @property
    def is_admin(self):
        return self.role == 'admin'

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'role': self.role,
            'phone': self.phone,
            'whitelisted': self.whitelisted,
        }
